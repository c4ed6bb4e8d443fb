import re

from .errors import TypeMismatch
from .number_parser import HjsonNumberParser
from .options import EncoderOptions, json_options
from .value import Type, Value, _Node, format_double

_INVISIBLE = "\x7f-\x9f\u00ad\u0600-\u0604\u070f\u17b4\u17b5\u200c-\u200f\u2028-\u202f\u2060-\u206f\ufeff\ufff0-\uffff"

# Characters that can only be written escaped in a quoted string
_NEEDS_ESCAPE = re.compile(f'[\\\\"\x00-\x1f{_INVISIBLE}]')
# Quoteless strings must not start with a token or end with whitespace
_NEEDS_QUOTES = re.compile(f"^\\s|^\"|^'|^#|^/\\*|^//|^\\{{|^\\}}|^\\[|^\\]|^:|^,|\\s\\Z|[\x00-\x1f{_INVISIBLE}]")
# Characters that a ''' string cannot hold (tab and newline are fine)
_NEEDS_ESCAPE_ML = re.compile(f"'''|\\A\\s+\\Z|'\\Z|[\x00-\x08\x0b-\x1f{_INVISIBLE}]")
_STARTS_WITH_KEYWORD = re.compile(r"(true|false|null)\s*((,|\]|\}|#|//|/\*).*)?", re.DOTALL)
_NEEDS_ESCAPE_NAME = re.compile(r"[,\{\[\}\]\s:#\"']|//|/\*")

_META = {
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
    '"': '\\"',
    "\\": "\\\\",
}

def _escape(s: str) -> str:
    return _NEEDS_ESCAPE.sub(lambda m: _META.get(m.group(0)) or f"\\u{ord(m.group(0)):04x}", s)

def _ends_in_line_comment(text: str) -> bool:
    """
    Tells if anything written after the comment text on the same line
    would become part of the comment.
    """
    i = 0
    n = len(text)
    while i < n:
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                return True
            i = end + 2
            continue
        if text[i] == "#" or text.startswith("//", i):
            nl = text.find("\n", i)
            if nl == -1:
                return True
            i = nl + 1
            continue
        i += 1
    return False

class HjsonWriter:
    def __init__(self, options: EncoderOptions | None = None):
        self.options = options or EncoderOptions()
        self.eol = self.options.eol
        self.indent = self.options.indent_by
        self.comments = self.options.comments
        # A separator between elements only works with quoted strings
        self.quote_always = self.options.quote_always or self.options.separator

    def write(self, value: Value) -> str:
        node = value._node
        if node.type is Type.UNDEFINED:
            return "null" if self.options.unknown_as_null else ""
        out: list[str] = []
        if self.comments and node.before:
            out.append(self._comment_lines(node.before, "") + self.eol)
        if self._omit_root_braces(node):
            if node.type is Type.MAP:
                parts = self._map_parts(node, "")
            else:
                parts = self._vector_parts(node, "", root_level=True)
            out.append(self.eol.join(parts))
        else:
            has_comment = bool(self.comments and node.after)
            out.append(self._value(node, "", no_indent=True, is_root=True, has_comment=has_comment))
        if self.comments and node.after:
            out.append(self._trailing_comment(node.after, ""))
        return "".join(out)

    def _omit_root_braces(self, node: _Node) -> bool:
        if not self.options.omit_root_braces:
            return False
        if node.type is Type.MAP:
            return node.size() > 0
        # A root array without brackets needs a scalar first element
        return node.type is Type.VECTOR and node.size() > 1 and node.data[0].type not in (Type.VECTOR, Type.MAP)

    def _comment_lines(self, text: str, gap: str) -> str:
        lines = text.split("\n")
        return self.eol.join([lines[0]] + [gap + line if line else line for line in lines[1:]])

    def _trailing_comment(self, text: str, gap: str) -> str:
        if text.startswith("\n"):
            return self.eol + gap + self._comment_lines(text[1:], gap)
        return " " + self._comment_lines(text, gap)

    def _value(self, node: _Node, gap: str, no_indent: bool, is_root: bool = False, has_comment: bool = False, in_vector: bool = False) -> str:
        t = node.type
        if t is Type.STRING:
            return self._quote(node.data, gap, has_comment, is_root, in_vector)
        if t is Type.INT64:
            return str(node.data)
        if t is Type.DOUBLE:
            return format_double(node.data, self.options.allow_minus_zero)
        if t is Type.BOOL:
            return "true" if node.data else "false"
        if t is Type.NULL:
            return "null"
        if t is Type.UNDEFINED:
            if self.options.unknown_as_null:
                return "null"
            raise TypeMismatch("Cannot encode an undefined value (set unknown_as_null to write it as null)")
        return self._container(node, gap, no_indent)

    def _container(self, node: _Node, gap: str, no_indent: bool) -> str:
        opening, closing = ("{", "}") if node.type is Type.MAP else ("[", "]")
        if node.size() == 0 and not (self.comments and node.inside):
            return opening + closing
        inner = gap + self.indent
        if node.type is Type.MAP:
            parts = self._map_parts(node, inner)
        else:
            parts = self._vector_parts(node, inner)
        prefix = "" if no_indent or self.options.braces_same_line else self.eol + gap
        body = "".join(self.eol + inner + part for part in parts)
        return prefix + opening + body + self.eol + gap + closing

    def _map_parts(self, node: _Node, gap: str) -> list[str]:
        data = node.data
        keys = data.order if self.options.preserve_insertion_order else data.sorted_keys()
        parts: list[str] = []
        for idx, k in enumerate(keys):
            child = data.items[k]
            after = self.comments and child.after
            if self.comments and child.before:
                parts.append(self._comment_lines(child.before, gap))
            line = self._quote_key(k) + ":"
            sv = self._value(child, gap, no_indent=False, has_comment=bool(after))
            if self.comments and child.key:
                line += " " + self._comment_lines(child.key, gap)
                if _ends_in_line_comment(child.key) and not sv.startswith(self.eol):
                    if child.type in (Type.VECTOR, Type.MAP):
                        sv = self.eol + gap + sv
                    else:
                        sv = self.eol + gap + self.indent + sv
            if not sv.startswith(self.eol):
                line += " "
            line += sv
            if self.options.separator and idx < len(keys) - 1:
                line += ","
            if after:
                line += self._trailing_comment(child.after, gap)
            parts.append(line)
        if self.comments and node.inside:
            parts.append(self._comment_lines(node.inside, gap))
        return parts

    def _vector_parts(self, node: _Node, gap: str, root_level: bool = False) -> list[str]:
        parts: list[str] = []
        last = len(node.data) - 1
        for idx, child in enumerate(node.data):
            after = self.comments and child.after
            if self.comments and child.before:
                parts.append(self._comment_lines(child.before, gap))
            line = self._value(child, gap, no_indent=True, is_root=root_level, has_comment=bool(after), in_vector=True)
            if self.options.separator and idx < last:
                line += ","
            if after:
                line += self._trailing_comment(child.after, gap)
            parts.append(line)
        if self.comments and node.inside:
            parts.append(self._comment_lines(node.inside, gap))
        return parts

    def _quote(self, s: str, gap: str, has_comment: bool, is_root: bool, in_vector: bool) -> str:
        if not s:
            return '""'
        # Quoteless strings must not read back as a keyword or number
        if (self.quote_always or has_comment or _NEEDS_QUOTES.search(s)
                or HjsonNumberParser.starts_with_number(s)
                or _STARTS_WITH_KEYWORD.fullmatch(s)
                or (is_root and ":" in s)):
            if not _NEEDS_ESCAPE.search(s):
                return '"' + s + '"'
            if self.options.multiline and not is_root and "\n" in s and not _NEEDS_ESCAPE_ML.search(s):
                if in_vector:
                    return self._ml_string(s, gap)
                return self.eol + gap + self.indent + self._ml_string(s, gap + self.indent)
            return '"' + _escape(s) + '"'
        return s

    def _ml_string(self, s: str, gap: str) -> str:
        res = ["'''"]
        for line in s.split("\n"):
            res.append(self.eol + (gap + line if line else ""))
        res.append(self.eol + gap + "'''")
        return "".join(res)

    def _quote_key(self, name: str) -> str:
        if not name:
            return '""'
        if self.options.quote_keys or _NEEDS_ESCAPE_NAME.search(name) or _NEEDS_ESCAPE.search(name):
            return '"' + _escape(name) + '"'
        return name

def marshal(value: object, options: EncoderOptions | None = None) -> str:
    """
    Returns a properly indented Hjson text representation of the value tree.
    """
    if not isinstance(value, Value):
        value = Value(value)
    return HjsonWriter(options).write(value)

def marshal_with_options(value: object, options: EncoderOptions) -> str:
    return marshal(value, options)

def marshal_json(value: object) -> str:
    """
    Returns a properly indented JSON text representation of the value tree.
    """
    return marshal(value, json_options())
