from .value import Type, Value, _MapData, _Node

def _merge_nodes(base: _Node, ext: _Node) -> _Node:
    if ext.type is Type.UNDEFINED:
        return base.deep_copy()
    if base.type is not Type.MAP or ext.type is not Type.MAP:
        return ext.deep_copy()

    data = _MapData()
    for k in base.data.order:
        base_child = base.data.items[k]
        ext_child = ext.data.items.get(k)
        data.put(k, base_child.deep_copy() if ext_child is None else _merge_nodes(base_child, ext_child))
    for k in ext.data.order:
        if k not in data.items and ext.data.items[k].type is not Type.UNDEFINED:
            data.put(k, ext.data.items[k].deep_copy())

    node = _Node(Type.MAP, data)
    node.copy_comments(base)
    for slot in ("before", "key", "inside", "after"):
        if getattr(ext, slot):
            setattr(node, slot, getattr(ext, slot))
    return node

def merge(base: Value, ext: Value) -> Value:
    """
    Returns a Value tree that is a combination of base and ext.

    Where both trees hold a map, the result holds all keys of both maps. For a
    key found in both, the value from ext is used, unless it is undefined.
    Maps found in both trees are merged recursively; anything else, vectors
    included, is taken whole from ext. If ext is undefined, a clone of base
    is returned. The result shares nothing with base or ext.
    """
    if not isinstance(base, Value):
        base = Value(base)
    if not isinstance(ext, Value):
        ext = Value(ext)
    return Value._from_node(_merge_nodes(base._node, ext._node))
