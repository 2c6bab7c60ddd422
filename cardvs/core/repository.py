"""
On-disk repository: a .cardvs directory holding objects, status and the working tree.
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from ..exceptions import CardVSError, NotFoundError, RepositoryError
from .config import Config
from .controller import VersionController
from .objects import Commit, is_hash
from .status import Bare, Status
from .store import FileBackend, ObjectStore
from .tree import Node, Tree, generate_id

logger = logging.getLogger(__name__)

class Repository:
    """A card repository rooted at repo_path."""

    def __init__(self, repo_path: str = "."):
        self.repo_path = Path(repo_path).resolve()
        self.cardvs_dir = self.repo_path / ".cardvs"
        self.objects_dir = self.cardvs_dir / "objects"
        self.status_file = self.cardvs_dir / "STATUS"
        self.working_file = self.cardvs_dir / "WORKING"
        self.config = Config(self.cardvs_dir / "config")
        self._controller: Optional[VersionController] = None

    def exists(self) -> bool:
        return self.cardvs_dir.is_dir()

    def _ensure_repo_exists(self):
        """Check if repository exists and raise error if not."""
        if not self.exists():
            raise RepositoryError("Not a CardVS repository. Run 'cardvs init' first.")

    def init(self) -> bool:
        """Create the repository layout; False if it already existed."""
        if self.exists():
            return False

        self.objects_dir.mkdir(parents=True)
        self.config.write_defaults()
        self._controller = VersionController(self._open_store())
        self.save()
        logger.info("Initialized empty CardVS repository in %s", self.cardvs_dir)
        return True

    def _open_store(self) -> ObjectStore:
        return ObjectStore(FileBackend(self.objects_dir, self.config.compression))

    def _write_atomic(self, path: Path, text: str):
        temp_file = path.with_suffix('.tmp')
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                f.write(text)
            temp_file.replace(path)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise RepositoryError(f"Failed to write {path.name}: {e}")

    @property
    def controller(self) -> VersionController:
        if self._controller is None:
            self._controller = self._load()
        return self._controller

    def _load(self) -> VersionController:
        self._ensure_repo_exists()
        store = self._open_store()
        controller = VersionController(store)

        try:
            if self.status_file.exists():
                with open(self.status_file, 'r', encoding='utf-8') as f:
                    controller.status = Status.from_dict(json.load(f))
            if self.working_file.exists():
                working_hash = self.working_file.read_text(encoding='utf-8').strip()
                controller.tree = controller.read_tree(working_hash)
        except (OSError, ValueError, CardVSError) as e:
            raise RepositoryError(f"Repository state is unreadable: {e}")

        logger.debug("Loaded repository %s with status %r", self.repo_path, controller.status)
        return controller

    def save(self):
        """Persist the working tree and status next to the objects."""
        controller = self.controller
        working_hash = controller.write_tree(controller.tree)
        self._write_atomic(self.working_file, working_hash + "\n")
        self._write_atomic(self.status_file, json.dumps(controller.status.to_dict(), indent=2))

    @property
    def status(self) -> Status:
        return self.controller.status

    @property
    def tree(self) -> Tree:
        return self.controller.tree

    @property
    def head(self) -> Optional[str]:
        return self.controller.head

    def resolve_commit(self, commit_ish: str) -> str:
        """Resolve HEAD, a full hash, or an unambiguous prefix of at least 4 characters."""
        store = self.controller.store
        if commit_ish == "HEAD":
            if self.head is None:
                raise NotFoundError("HEAD does not point to a commit yet")
            return self.head
        if is_hash(commit_ish):
            store.get_commit(commit_ish)
            return commit_ish

        if len(commit_ish) >= 4:
            matches = [
                obj_hash for obj_hash in store
                if obj_hash.startswith(commit_ish) and isinstance(store.get(obj_hash), Commit)
            ]
            if len(matches) == 1:
                return matches[0]
            if len(matches) > 1:
                raise RepositoryError(f"Ambiguous commit prefix: {commit_ish}")

        raise NotFoundError(f"Not a valid commit: {commit_ish}")

    # Edits

    def insert(self, content: str, parent_id: str, position: int, node_id: Optional[str] = None) -> str:
        node_id = node_id or generate_id()
        self.controller.insert(Node(node_id, content), parent_id, position)
        self.save()
        return node_id

    def update(self, node_id: str, content: str):
        self.controller.update(node_id, content)
        self.save()

    def delete(self, node_id: str):
        self.controller.delete(node_id)
        self.save()

    def move(self, subtree_id: str, new_parent_id: str, position: int):
        self.controller.move(subtree_id, new_parent_id, position)
        self.save()

    # History

    def commit(self, message: str = "", author: Optional[str] = None) -> str:
        commit_hash = self.controller.commit(author or self.config.author, message=message)
        self.save()
        return commit_hash

    def checkout(self, commit_ish: str) -> str:
        commit_hash = self.resolve_commit(commit_ish)
        self.controller.checkout(commit_hash)
        self.save()
        return commit_hash

    def log(self, max_count: Optional[int] = None) -> List[Commit]:
        return self.controller.log(max_count=max_count)

    def fetch_from(self, other: 'Repository') -> Tuple[str, Dict[str, bytes]]:
        """Another repository's head plus the objects this one lacks."""
        other_head = other.head
        if other_head is None:
            raise RepositoryError(f"{other.repo_path} has no commits to merge")
        objects = other.controller.store.delta(other_head, self.controller.store)
        logger.info("Fetched %d objects from %s", len(objects), other.repo_path)
        return other_head, objects

    def merge_from(self, other: 'Repository') -> Status:
        incoming_head, objects = self.fetch_from(other)
        status = self.controller.merge(incoming_head, objects, author=self.config.author)
        self.save()
        return status

    def is_bare(self) -> bool:
        return isinstance(self.status, Bare)
