"""
Content-addressed object store with pluggable storage backends.

The store is append-only: writing an object that is already present is a
no-op, and nothing is ever deleted. Where the bytes live is decided by the
backend; the store itself only computes and looks up hashes.
"""
import logging
import zlib
from collections import OrderedDict
from pathlib import Path
from typing import Container, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Union
from ..exceptions import MalformedInputError, NotFoundError, ObjectError
from .objects import Blob, CardObject, Commit, TreeObject

logger = logging.getLogger(__name__)

class MemoryBackend:
    """Keeps serialized objects in a dictionary."""

    def __init__(self):
        self._objects: Dict[str, bytes] = {}

    def read(self, obj_hash: str) -> Optional[bytes]:
        return self._objects.get(obj_hash)

    def write(self, obj_hash: str, data: bytes):
        self._objects[obj_hash] = data

    def contains(self, obj_hash: str) -> bool:
        return obj_hash in self._objects

    def hashes(self) -> Iterator[str]:
        return iter(list(self._objects))

class FileBackend:
    """Loose zlib-compressed objects under objects/<2 hex>/<38 hex>."""

    def __init__(self, objects_dir: Path, compression: int = 6):
        self.objects_dir = Path(objects_dir)
        self.compression = compression

    def _object_path(self, obj_hash: str) -> Path:
        return self.objects_dir / obj_hash[:2] / obj_hash[2:]

    def read(self, obj_hash: str) -> Optional[bytes]:
        obj_file = self._object_path(obj_hash)
        if not obj_file.exists():
            return None

        with open(obj_file, 'rb') as f:
            compressed = f.read()

        try:
            return zlib.decompress(compressed)
        except zlib.error as e:
            raise ObjectError(f"Object {obj_hash} is corrupt: {e}")

    def write(self, obj_hash: str, data: bytes):
        obj_file = self._object_path(obj_hash)
        obj_file.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temporary name first so readers never see a partial object
        temp_file = obj_file.with_suffix('.tmp')
        with open(temp_file, 'wb') as f:
            f.write(zlib.compress(data, self.compression))
        temp_file.replace(obj_file)

    def contains(self, obj_hash: str) -> bool:
        return self._object_path(obj_hash).exists()

    def hashes(self) -> Iterator[str]:
        if not self.objects_dir.exists():
            return
        for obj_dir in sorted(self.objects_dir.iterdir()):
            if obj_dir.is_dir() and len(obj_dir.name) == 2:
                for obj_file in sorted(obj_dir.iterdir()):
                    if not obj_file.suffix:
                        yield obj_dir.name + obj_file.name

ObjectBatch = Union[Mapping[str, bytes], Iterable[bytes]]

DEFAULT_CACHE_SIZE = 1024

class ObjectStore:
    """Content-addressed, append-only mapping of hash to object.

    Parsed objects are kept in a small least-recently-used cache; the
    backend stays the source of truth.
    """

    def __init__(self, backend=None, cache_size: int = DEFAULT_CACHE_SIZE):
        self.backend = backend if backend is not None else MemoryBackend()
        self.cache_size = cache_size
        self._cache: 'OrderedDict[str, CardObject]' = OrderedDict()

    def _remember(self, obj_hash: str, obj: CardObject):
        self._cache[obj_hash] = obj
        self._cache.move_to_end(obj_hash)
        while len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)

    def put(self, data: Union[bytes, CardObject]) -> str:
        """Store an object if unseen and return its hash."""
        if isinstance(data, CardObject):
            obj = data
        else:
            try:
                obj = CardObject.parse(data)
            except ObjectError as e:
                raise MalformedInputError(str(e))

        obj_hash = obj.hash
        if obj_hash not in self._cache and not self.backend.contains(obj_hash):
            self.backend.write(obj_hash, obj.serialize())
            logger.debug("Stored %s %s", obj.obj_type, obj_hash)
        self._remember(obj_hash, obj)
        return obj_hash

    def get(self, obj_hash: str) -> CardObject:
        """Load an object by hash."""
        obj = self._cache.get(obj_hash)
        if obj is not None:
            self._cache.move_to_end(obj_hash)
            return obj

        data = self.backend.read(obj_hash)
        if data is None:
            raise NotFoundError(f"Object {obj_hash} not found")

        obj = CardObject.parse(data)
        if obj.hash != obj_hash:
            raise ObjectError(f"Object {obj_hash} failed its hash check")
        self._remember(obj_hash, obj)
        return obj

    def _get_typed(self, obj_hash: str, obj_class):
        obj = self.get(obj_hash)
        if not isinstance(obj, obj_class):
            raise ObjectError(f"Expected {obj_class.__name__} object at {obj_hash}, got {obj.obj_type}")
        return obj

    def get_blob(self, obj_hash: str) -> Blob:
        return self._get_typed(obj_hash, Blob)

    def get_tree(self, obj_hash: str) -> TreeObject:
        return self._get_typed(obj_hash, TreeObject)

    def get_commit(self, obj_hash: str) -> Commit:
        return self._get_typed(obj_hash, Commit)

    def has(self, obj_hash: str) -> bool:
        return obj_hash in self._cache or self.backend.contains(obj_hash)

    def __contains__(self, obj_hash) -> bool:
        return isinstance(obj_hash, str) and self.has(obj_hash)

    def __iter__(self) -> Iterator[str]:
        return iter(self.backend.hashes())

    def __len__(self) -> int:
        return sum(1 for _ in self.backend.hashes())

    def add_objects(self, batch: ObjectBatch) -> List[str]:
        """Validate a whole batch of serialized objects, then store it.

        A mapping batch must be keyed by each object's hash. Nothing is
        written unless every entry parses.
        """
        if batch is None:
            return []
        if isinstance(batch, (bytes, bytearray, str)):
            raise MalformedInputError("Object batch must be a collection of objects, not a single value")

        if isinstance(batch, Mapping):
            entries = list(batch.items())
        else:
            try:
                entries = [(None, data) for data in batch]
            except TypeError:
                raise MalformedInputError(f"Object batch is not iterable: {type(batch).__name__}")

        parsed = []
        for expected_hash, data in entries:
            try:
                obj = CardObject.parse(data)
            except ObjectError as e:
                raise MalformedInputError(f"Unparsable object in batch: {e}")
            if expected_hash is not None and obj.hash != expected_hash:
                raise MalformedInputError(f"Object keyed {expected_hash} hashes to {obj.hash}")
            parsed.append(obj)

        stored = [self.put(obj) for obj in parsed]
        logger.debug("Added batch of %d objects", len(stored))
        return stored

    def reachable(self, commit_hash: str) -> Set[str]:
        """All object hashes reachable from a commit (history, trees and blobs)."""
        seen: Set[str] = set()
        pending = [commit_hash]
        while pending:
            obj_hash = pending.pop()
            if obj_hash in seen:
                continue
            seen.add(obj_hash)
            obj = self.get(obj_hash)
            if isinstance(obj, Commit):
                pending.append(obj.tree_hash)
                pending.extend(obj.parents)
            elif isinstance(obj, TreeObject):
                pending.append(obj.content_hash)
                pending.extend(child_hash for _, child_hash in obj.children)
        return seen

    def delta(self, commit_hash: str, known: Container = ()) -> Dict[str, bytes]:
        """Serialized objects reachable from commit_hash that `known` lacks."""
        return {
            obj_hash: self.get(obj_hash).serialize()
            for obj_hash in sorted(self.reachable(commit_hash))
            if obj_hash not in known
        }
