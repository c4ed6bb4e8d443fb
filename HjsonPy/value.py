import math
from enum import Enum
from typing import Iterator

from .errors import IndexOutOfBounds, TypeMismatch
from .number_parser import INT64_MAX, INT64_MIN, HjsonNumberParser

class Type(Enum):
    UNDEFINED = 0
    NULL = 1
    BOOL = 2
    DOUBLE = 3
    INT64 = 4
    STRING = 5
    VECTOR = 6
    MAP = 7

_EMPTY_DATA = {
    Type.UNDEFINED: None,
    Type.NULL: None,
    Type.BOOL: False,
    Type.DOUBLE: 0.0,
    Type.INT64: 0,
    Type.STRING: "",
}

def format_double(d: float, allow_minus_zero: bool = False) -> str:
    if d == 0 and math.copysign(1.0, d) < 0:
        return "-0" if allow_minus_zero else "0"
    return repr(d)

class _MapData:
    # Keys in insertion order are kept in `order`, lookups go through `items`.
    __slots__ = ("items", "order")

    def __init__(self) -> None:
        self.items: dict[str, "_Node"] = {}
        self.order: list[str] = []

    def put(self, key: str, node: "_Node") -> None:
        if key not in self.items:
            self.order.append(key)
        self.items[key] = node

    def remove(self, key: str) -> "_Node":
        self.order.remove(key)
        return self.items.pop(key)

    def sorted_keys(self) -> list[str]:
        return sorted(self.items)

class _Node:
    __slots__ = ("type", "data", "before", "key", "inside", "after", "shares")

    def __init__(self, type: Type, data: object = None) -> None:
        self.type = type
        self.data = data
        self.before = ""
        self.key = ""
        self.inside = ""
        self.after = ""
        # Number of containers and root handles that reference this node.
        self.shares = 1

    @staticmethod
    def empty(type: Type) -> "_Node":
        if type is Type.VECTOR:
            return _Node(type, [])
        if type is Type.MAP:
            return _Node(type, _MapData())
        return _Node(type, _EMPTY_DATA[type])

    def become(self, type: Type) -> None:
        fresh = _Node.empty(type)
        self.type = fresh.type
        self.data = fresh.data

    def child(self, slot: str | int) -> "_Node | None":
        if self.type is Type.MAP and isinstance(slot, str):
            return self.data.items.get(slot)
        if self.type is Type.VECTOR and isinstance(slot, int) and 0 <= slot < len(self.data):
            return self.data[slot]
        return None

    def set_child(self, slot: str | int, node: "_Node") -> None:
        if self.type is Type.MAP:
            self.data.items[slot] = node
        else:
            self.data[slot] = node

    def set_value_from(self, other: "_Node") -> None:
        # Containers get their own list/map; the children themselves are shared.
        if other.type is Type.VECTOR:
            data = list(other.data)
            for child in data:
                child.shares += 1
        elif other.type is Type.MAP:
            data = _MapData()
            for k in other.data.order:
                child = other.data.items[k]
                child.shares += 1
                data.put(k, child)
        else:
            data = other.data
        self.type = other.type
        self.data = data

    def copy_comments(self, other: "_Node") -> None:
        self.before = other.before
        self.key = other.key
        self.inside = other.inside
        self.after = other.after

    def shallow_copy(self) -> "_Node":
        node = _Node(self.type)
        node.set_value_from(self)
        node.copy_comments(self)
        return node

    def deep_copy(self) -> "_Node":
        if self.type is Type.VECTOR:
            node = _Node(self.type, [child.deep_copy() for child in self.data])
        elif self.type is Type.MAP:
            data = _MapData()
            for k in self.data.order:
                data.put(k, self.data.items[k].deep_copy())
            node = _Node(self.type, data)
        else:
            node = _Node(self.type, self.data)
        node.copy_comments(self)
        return node

    def size(self) -> int:
        if self.type is Type.VECTOR:
            return len(self.data)
        if self.type is Type.MAP:
            return len(self.data.items)
        if self.type is Type.STRING:
            return len(self.data)
        if self.type in (Type.UNDEFINED, Type.NULL):
            return 0
        return 1

    def equals(self, other: "_Node") -> bool:
        if self.type is not other.type:
            return False
        if self.type is Type.VECTOR:
            if len(self.data) != len(other.data):
                return False
            return all(a.equals(b) for a, b in zip(self.data, other.data))
        if self.type is Type.MAP:
            if self.data.items.keys() != other.data.items.keys():
                return False
            return all(child.equals(other.data.items[k]) for k, child in self.data.items.items())
        return self.data == other.data

    def to_python(self) -> object:
        if self.type is Type.VECTOR:
            return [child.to_python() for child in self.data]
        if self.type is Type.MAP:
            return {k: self.data.items[k].to_python() for k in self.data.order}
        return self.data

def _build_node(obj: object) -> _Node:
    """
    Returns a node holding obj that the caller may store in a container as is.
    """
    if isinstance(obj, Value):
        node = obj._node
        node.shares += 1
        return node
    if isinstance(obj, Type):
        return _Node.empty(obj)
    if obj is None:
        return _Node(Type.NULL)
    if isinstance(obj, bool):
        return _Node(Type.BOOL, obj)
    if isinstance(obj, int):
        if INT64_MIN <= obj <= INT64_MAX:
            return _Node(Type.INT64, obj)
        return _Node(Type.DOUBLE, _checked_double(float(obj)))
    if isinstance(obj, float):
        return _Node(Type.DOUBLE, _checked_double(obj))
    if isinstance(obj, str):
        return _Node(Type.STRING, obj)
    if isinstance(obj, dict):
        node = _Node.empty(Type.MAP)
        for k, v in obj.items():
            if not isinstance(k, str):
                raise TypeMismatch(f"Map keys must be strings, got {type(k).__name__}")
            node.data.put(k, _build_node(v))
        return node
    if isinstance(obj, (list, tuple)):
        return _Node(Type.VECTOR, [_build_node(v) for v in obj])
    raise TypeMismatch(f"Cannot make a Value from {type(obj).__name__}")

def _checked_double(d: float) -> float:
    if math.isnan(d) or math.isinf(d):
        raise ValueError("Value cannot hold NaN or Infinity")
    return d

def _clamp_int64(number: int | float) -> int:
    # Doubles outside the int64 range saturate at the nearest bound.
    return max(INT64_MIN, min(INT64_MAX, int(number)))

_UNSET = object()

class Value:
    """
    A handle onto an Hjson value tree.

    Copying a handle (Value(other), copy.copy) shares the tree until one of
    the handles is written to; clone() makes an independent deep copy right
    away. Indexing returns a handle that refers into the tree it came from:
    writing through it writes the tree.
    """
    __slots__ = ("_root", "_owner", "_slot", "_pending")

    def __init__(self, value: object = _UNSET) -> None:
        self._owner: Value | None = None
        self._slot: str | int | None = None
        self._pending: _Node | None = None
        self._root: _Node | None = _Node(Type.UNDEFINED) if value is _UNSET else _build_node(value)

    @staticmethod
    def _from_node(node: _Node) -> "Value":
        value = Value.__new__(Value)
        value._owner = None
        value._slot = None
        value._pending = None
        value._root = node
        return value

    @staticmethod
    def _child_of(owner: "Value", slot: str | int) -> "Value":
        value = Value.__new__(Value)
        value._owner = owner
        value._slot = slot
        value._pending = None
        value._root = None
        return value

    @property
    def _node(self) -> _Node:
        if self._owner is None:
            return self._root
        child = self._owner._node.child(self._slot)
        if child is not None:
            return child
        # A key that does not exist (yet) reads as undefined.
        if self._pending is None:
            self._pending = _Node(Type.UNDEFINED)
        return self._pending

    def _writable(self) -> _Node:
        if self._owner is None:
            node = self._root
            if node.shares > 1:
                node.shares -= 1
                node = node.shallow_copy()
                self._root = node
            return node

        parent = self._owner._writable()
        child = parent.child(self._slot)
        if child is None:
            if isinstance(self._slot, int):
                raise IndexOutOfBounds(f"Index {self._slot} no longer exists")
            if parent.type is Type.UNDEFINED:
                parent.become(Type.MAP)
            elif parent.type is not Type.MAP:
                raise TypeMismatch("Cannot add a key to a value that is not a Map")
            child = self._pending if self._pending is not None else _Node(Type.UNDEFINED)
            self._pending = None
            parent.data.put(self._slot, child)
        if child.shares > 1:
            child.shares -= 1
            child = child.shallow_copy()
            parent.set_child(self._slot, child)
        return child

    #
    # Type information
    #

    def type(self) -> Type:
        return self._node.type

    def defined(self) -> bool:
        return self._node.type is not Type.UNDEFINED

    def empty(self) -> bool:
        node = self._node
        if node.type in (Type.UNDEFINED, Type.NULL):
            return True
        if node.type in (Type.STRING, Type.VECTOR, Type.MAP):
            return node.size() == 0
        return False

    def is_numeric(self) -> bool:
        return self._node.type in (Type.DOUBLE, Type.INT64)

    def is_container(self) -> bool:
        return self._node.type in (Type.VECTOR, Type.MAP)

    def size(self) -> int:
        return self._node.size()

    def __len__(self) -> int:
        return self._node.size()

    #
    # Element access
    #

    def __getitem__(self, key: str | int) -> "Value":
        node = self._node
        if isinstance(key, str):
            if node.type not in (Type.MAP, Type.UNDEFINED):
                raise TypeMismatch(f"Cannot use a key on a value of type {node.type.name}")
            return Value._child_of(self, key)
        if node.type is Type.VECTOR:
            self._check_index(key, len(node.data))
            return Value._child_of(self, key)
        if node.type is Type.MAP:
            self._check_index(key, len(node.data.order))
            return Value._child_of(self, node.data.order[key])
        raise TypeMismatch(f"Cannot use an index on a value of type {node.type.name}")

    def __setitem__(self, key: str | int, value: object) -> None:
        if isinstance(key, str):
            node = self._node
            if node.type not in (Type.MAP, Type.UNDEFINED):
                raise TypeMismatch(f"Cannot use a key on a value of type {node.type.name}")
            if node.type is Type.MAP and key in node.data.items:
                self[key].assign(value)
                return
            new = _build_node(value)
            node = self._writable()
            if node.type is Type.UNDEFINED:
                node.become(Type.MAP)
            node.data.put(key, new)
            return
        self[key].assign(value)

    def __delitem__(self, key: str | int) -> None:
        if self.erase(key) == 0:
            raise IndexOutOfBounds(f"Key not found: {key!r}")

    def __contains__(self, item: object) -> bool:
        node = self._node
        if node.type is Type.MAP:
            return item in node.data.items
        if node.type is Type.VECTOR:
            other = Value(item)._node
            return any(child.equals(other) for child in node.data)
        return False

    def at(self, key: str | int) -> "Value":
        """
        Like indexing, but fails with IndexOutOfBounds instead of creating a key.
        """
        node = self._node
        if isinstance(key, str):
            if node.type is not Type.MAP or key not in node.data.items:
                raise IndexOutOfBounds(f"Key not found: {key!r}")
            return Value._child_of(self, key)
        if node.type not in (Type.VECTOR, Type.MAP):
            raise IndexOutOfBounds(f"Index {key} out of bounds for a value of type {node.type.name}")
        return self[key]

    def get(self, key: str, default: object = None) -> object:
        node = self._node
        if node.type is Type.MAP and key in node.data.items:
            return Value._child_of(self, key)
        return default

    def key(self, index: int) -> str:
        node = self._node
        if node.type is not Type.MAP:
            raise TypeMismatch(f"key() is only valid for a Map, not {node.type.name}")
        self._check_index(index, len(node.data.order))
        return node.data.order[index]

    def keys(self) -> list[str]:
        node = self._node
        if node.type is Type.UNDEFINED:
            return []
        if node.type is not Type.MAP:
            raise TypeMismatch(f"keys() is only valid for a Map, not {node.type.name}")
        return node.data.sorted_keys()

    def values(self) -> list["Value"]:
        return [Value._child_of(self, k) for k in self.keys()]

    def items(self) -> list[tuple[str, "Value"]]:
        return [(k, Value._child_of(self, k)) for k in self.keys()]

    def __iter__(self) -> Iterator:
        node = self._node
        if node.type is Type.VECTOR:
            return iter([Value._child_of(self, i) for i in range(len(node.data))])
        return iter(self.keys())

    #
    # Mutation
    #

    def erase(self, key: str | int) -> int:
        """
        Removes a key from a Map, or the element at a position from a Vector
        (for a Map, the position in insertion order). Returns the number of
        removed elements.
        """
        node = self._node
        if isinstance(key, str):
            if node.type is not Type.MAP:
                raise TypeMismatch(f"Cannot erase a key from a value of type {node.type.name}")
            if key not in node.data.items:
                return 0
            self._writable().data.remove(key).shares -= 1
            return 1
        if node.type is Type.VECTOR:
            self._check_index(key, len(node.data))
            self._writable().data.pop(key).shares -= 1
            return 1
        if node.type is Type.MAP:
            self._check_index(key, len(node.data.order))
            writable = self._writable()
            writable.data.remove(writable.data.order[key]).shares -= 1
            return 1
        raise TypeMismatch(f"Cannot erase from a value of type {node.type.name}")

    def move(self, from_index: int, to_index: int) -> None:
        """
        Moves the element at from_index to to_index. If from_index is less than
        to_index the element ends up at to_index - 1. For a Map this changes
        the insertion order only; iteration is always in key order.
        """
        node = self._node
        if node.type not in (Type.VECTOR, Type.MAP):
            raise TypeMismatch(f"Cannot move elements of a value of type {node.type.name}")
        size = node.size()
        if from_index < 0 or from_index >= size or to_index < 0 or to_index > size:
            raise IndexOutOfBounds(f"Cannot move from {from_index} to {to_index} in a container of size {size}")
        node = self._writable()
        seq = node.data if node.type is Type.VECTOR else node.data.order
        if from_index < to_index:
            to_index -= 1
        seq.insert(to_index, seq.pop(from_index))

    def push_back(self, value: object) -> None:
        node = self._node
        if node.type not in (Type.VECTOR, Type.UNDEFINED):
            raise TypeMismatch(f"push_back() is only valid for a Vector, not {node.type.name}")
        new = _build_node(value)
        node = self._writable()
        if node.type is Type.UNDEFINED:
            node.become(Type.VECTOR)
        node.data.append(new)

    def assign(self, value: object) -> None:
        """
        Gives this value the contents of another one, keeping its own comments.
        """
        # The source is pinned before the target detaches.
        source = _build_node(value)
        self._writable().set_value_from(source)
        source.shares -= 1

    def assign_with_comments(self, value: object) -> None:
        source = _build_node(value)
        node = self._writable()
        node.set_value_from(source)
        node.copy_comments(source)
        source.shares -= 1

    #
    # Comparison and copying
    #

    def deep_equal(self, other: "Value") -> bool:
        return self._node.equals(other._node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            try:
                other = Value(other)
            except (TypeMismatch, ValueError):
                return NotImplemented
        return self.deep_equal(other)

    __hash__ = None

    def clone(self) -> "Value":
        return Value._from_node(self._node.deep_copy())

    def __copy__(self) -> "Value":
        return Value(self)

    def __deepcopy__(self, memo: dict) -> "Value":
        return self.clone()

    #
    # Conversions
    #

    def to_bool(self) -> bool:
        node = self._node
        if node.type in (Type.VECTOR, Type.MAP, Type.STRING):
            return node.size() > 0
        return bool(node.data)

    def to_double(self) -> float:
        node = self._node
        if node.type in (Type.UNDEFINED, Type.NULL):
            return 0.0
        if node.type is Type.STRING:
            parsed = HjsonNumberParser.parse_value(node.data)
            return 0.0 if parsed is None else float(parsed)
        if node.type in (Type.VECTOR, Type.MAP):
            raise TypeMismatch(f"Cannot convert a {node.type.name} to a number")
        return float(node.data)

    def to_int64(self) -> int:
        node = self._node
        if node.type in (Type.UNDEFINED, Type.NULL):
            return 0
        if node.type is Type.STRING:
            parsed = HjsonNumberParser.parse_value(node.data)
            return 0 if parsed is None else _clamp_int64(parsed)
        if node.type in (Type.VECTOR, Type.MAP):
            raise TypeMismatch(f"Cannot convert a {node.type.name} to a number")
        return _clamp_int64(node.data)

    def to_string(self) -> str:
        node = self._node
        if node.type in (Type.UNDEFINED, Type.NULL):
            return ""
        if node.type is Type.BOOL:
            return "true" if node.data else "false"
        if node.type is Type.DOUBLE:
            return format_double(node.data)
        if node.type in (Type.VECTOR, Type.MAP):
            raise TypeMismatch(f"Cannot convert a {node.type.name} to a string")
        return str(node.data)

    def to_python(self) -> object:
        return self._node.to_python()

    def __bool__(self) -> bool:
        return self.to_bool()

    def __float__(self) -> float:
        return self.to_double()

    def __int__(self) -> int:
        return self.to_int64()

    def __str__(self) -> str:
        from .encoder import marshal
        return marshal(self)

    def __repr__(self) -> str:
        if self._node.type is Type.UNDEFINED:
            return "Value()"
        return f"Value({self.to_python()!r})"

    #
    # Comments
    #

    @property
    def comment_before(self) -> str:
        return self._node.before

    @comment_before.setter
    def comment_before(self, text: str) -> None:
        self._writable().before = text or ""

    @property
    def comment_key(self) -> str:
        return self._node.key

    @comment_key.setter
    def comment_key(self, text: str) -> None:
        self._writable().key = text or ""

    @property
    def comment_inside(self) -> str:
        return self._node.inside

    @comment_inside.setter
    def comment_inside(self, text: str) -> None:
        self._writable().inside = text or ""

    @property
    def comment_after(self) -> str:
        return self._node.after

    @comment_after.setter
    def comment_after(self, text: str) -> None:
        self._writable().after = text or ""

    def set_comments(self, other: "Value") -> None:
        self._writable().copy_comments(other._node)

    def clear_comments(self) -> None:
        self._writable().copy_comments(_Node(Type.UNDEFINED))

    @staticmethod
    def _check_index(index: int, size: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= size:
            raise IndexOutOfBounds(f"Index {index} out of bounds for size {size}")
