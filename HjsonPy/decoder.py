from .errors import HjsonSyntaxError
from .number_parser import HjsonNumberParser
from .options import DecoderOptions
from .value import Type, Value, _Node

class _Gap:
    """
    Whitespace and comments found between two tokens.

    Each comment is recorded as (start, end, newline_before), where
    newline_before tells if a line break was seen before the comment.
    """
    __slots__ = ("comments", "had_nl")

    def __init__(self) -> None:
        self.comments: list[tuple[int, int, bool]] = []
        self.had_nl = False

    def extend(self, other: "_Gap") -> None:
        for start, end, nl in other.comments:
            self.comments.append((start, end, nl or self.had_nl))
        self.had_nl = self.had_nl or other.had_nl

    def same_line(self) -> list[tuple[int, int, bool]]:
        return [c for c in self.comments if not c[2]]

    def rest(self) -> list[tuple[int, int, bool]]:
        return [c for c in self.comments if c[2]]

class HjsonReader:
    PUNCTUATORS = set([",", ":", "[", "]", "{", "}"])
    KEYWORDS = {"true": (Type.BOOL, True), "false": (Type.BOOL, False), "null": (Type.NULL, None)}
    ESCAPES = {
        '"': '"',
        "'": "'",
        "\\": "\\",
        "/": "/",
        "b": "\b",
        "f": "\f",
        "n": "\n",
        "r": "\r",
        "t": "\t",
    }

    def __init__(self, source: str, options: DecoderOptions | None = None):
        self.source = source
        self.options = options or DecoderOptions()
        self.i = 0
        self.n = len(source)

    def read(self) -> Value:
        return Value._from_node(self._read_root())

    def _eof(self) -> bool:
        return self.i >= self.n

    def _peek(self, k: int = 0) -> str:
        j = self.i + k
        return self.source[j] if j < self.n else ""

    def _take(self) -> str:
        c = self._peek()
        self.i += 1
        return c

    def _err(self, msg: str) -> HjsonSyntaxError:
        offset = min(self.i, self.n)
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return HjsonSyntaxError(msg, offset, line, column)

    def _skip(self) -> _Gap:
        gap = _Gap()
        while not self._eof():
            c = self._peek()
            if c == "\n":
                gap.had_nl = True
                self.i += 1
                continue
            if c <= " ":
                self.i += 1
                continue
            start = self.i
            if c == "#" or (c == "/" and self._peek(1) == "/"):
                while not self._eof() and self._peek() not in "\n\r":
                    self.i += 1
            elif c == "/" and self._peek(1) == "*":
                end = self.source.find("*/", self.i + 2)
                if end == -1:
                    raise self._err("Unterminated block comment")
                self.i = end + 2
            else:
                break
            if self.options.comments:
                gap.comments.append((start, self.i, gap.had_nl))
        return gap

    def _comment_text(self, comments: list[tuple[int, int, bool]]) -> str:
        if not comments:
            return ""
        start = comments[0][0]
        raw = self.source[start:comments[-1][1]]
        # Dedent continuation lines to the column of the first comment
        column = start - (self.source.rfind("\n", 0, start) + 1)
        lines = raw.split("\n")
        out = [lines[0].rstrip("\r")]
        for line in lines[1:]:
            cut = 0
            while cut < column and cut < len(line) and line[cut] in " \t":
                cut += 1
            out.append(line[cut:].rstrip("\r"))
        return "\n".join(out)

    def _root_trailer(self, gap: _Gap) -> str:
        text = self._comment_text(gap.comments)
        if text and gap.comments[0][2]:
            return "\n" + text
        return text

    def _read_root(self) -> _Node:
        lead = self._skip()
        c = self._peek()
        if c == "":
            node = _Node.empty(Type.MAP)
            node.inside = self._comment_text(lead.comments)
            return node
        if c in "{[":
            node = self._read_value()
            node.before = self._comment_text(lead.comments)
            gap = self._skip()
            if not self._eof():
                raise self._err("Syntax error, found trailing characters")
            node.after = self._root_trailer(gap)
            return node
        start = self.i
        if self._looks_like_key():
            try:
                return self._read_object(braces=False, lead=lead.comments)
            except HjsonSyntaxError as e:
                error = e
            # Not an object after all, maybe a single value like "http://x"
            self.i = start
            try:
                node = self._read_value()
                gap = self._skip()
            except HjsonSyntaxError:
                raise error from None
            if not self._eof():
                raise error
            node.before = self._comment_text(lead.comments)
            node.after = self._root_trailer(gap)
            return node
        return self._read_root_value(lead)

    def _read_root_value(self, lead: _Gap) -> _Node:
        node = self._read_value()
        node.before = self._comment_text(lead.comments)
        gap = self._skip()
        if self._eof():
            node.after = self._root_trailer(gap)
            return node
        if self._peek() == "," or gap.had_nl:
            return self._read_array(brackets=False, first=node, gap=gap)
        raise self._err("Syntax error, found trailing characters")

    def _looks_like_key(self) -> bool:
        save = self.i
        try:
            self._read_key()
            self._skip()
            is_obj = self._peek() == ":"
        except HjsonSyntaxError:
            is_obj = False
        self.i = save
        return is_obj

    def _read_separator(self, last: _Node, closer: str, what: str, gap: _Gap | None = None) -> list[tuple[int, int, bool]]:
        if gap is None:
            gap = self._skip()
        comma = self._peek() == ","
        if comma:
            self.i += 1
            gap.extend(self._skip())
        last.after = self._comment_text(gap.same_line())
        if not comma and not gap.had_nl and not self._eof() and self._peek() != closer:
            raise self._err(f"Expected ',' or newline after {what}")
        return gap.rest()

    def _read_object(self, braces: bool, lead: list[tuple[int, int, bool]] | None = None) -> _Node:
        node = _Node.empty(Type.MAP)
        closer = "}" if braces else ""
        if braces:
            self.i += 1
            lead = self._skip().comments
        while True:
            if self._peek() == closer:
                node.inside = self._comment_text(lead)
                if braces:
                    self.i += 1
                return node
            if self._eof():
                raise self._err("End of input while parsing an object (did you forget a closing '}'?)")
            key_start = self.i
            key = self._read_key()
            key_gap = self._skip()
            if self._peek() != ":":
                raise self._err("Expected ':' after a key in object")
            self.i += 1
            key_gap.extend(self._skip())
            value = self._read_value()
            value.before = self._comment_text(lead)
            value.key = self._comment_text(key_gap.comments)
            if key in node.data.items and self.options.duplicate_key_exception:
                self.i = key_start
                raise self._err(f"Duplicate key \"{key}\"")
            node.data.put(key, value)
            lead = self._read_separator(value, closer, "a member of an object")

    def _read_array(self, brackets: bool, first: _Node | None = None, gap: _Gap | None = None) -> _Node:
        node = _Node.empty(Type.VECTOR)
        closer = "]" if brackets else ""
        if first is None:
            if brackets:
                self.i += 1
            lead = self._skip().comments
        else:
            node.data.append(first)
            lead = self._read_separator(first, closer, "an element of an array", gap)
        while True:
            if self._peek() == closer:
                node.inside = self._comment_text(lead)
                if brackets:
                    self.i += 1
                return node
            if self._eof():
                raise self._err("End of input while parsing an array (did you forget a closing ']'?)")
            item = self._read_value()
            item.before = self._comment_text(lead)
            node.data.append(item)
            lead = self._read_separator(item, closer, "an element of an array")

    def _read_value(self) -> _Node:
        c = self._peek()
        if c == "":
            raise self._err("Expected a value, got end of input")
        if c == "{":
            return self._read_object(braces=True)
        if c == "[":
            return self._read_array(brackets=True)
        if c in "\"'":
            if self.source.startswith("'''", self.i):
                return _Node(Type.STRING, self._read_multiline())
            return _Node(Type.STRING, self._read_string())
        return self._read_quoteless()

    def _read_key(self) -> str:
        if self._peek() in "\"'":
            return self._read_string()
        start = self.i
        name_end = -1
        while True:
            c = self._peek()
            if c == ":":
                end = self.i if name_end < 0 else name_end
                if end == start:
                    raise self._err("Found ':' but no key name (for an empty key name use quotes)")
                return self.source[start:end]
            if c == "":
                raise self._err("Found end of input while looking for a key name")
            if c <= " ":
                if name_end < 0:
                    name_end = self.i
            elif c in self.PUNCTUATORS:
                raise self._err(f"Found '{c}' where a key name was expected (check your syntax or use quotes if the key name includes {{}}[],: or whitespace)")
            elif name_end >= 0:
                raise self._err("Found whitespace in your key name (use quotes to include)")
            self.i += 1

    def _line_end(self, start: int) -> int:
        j = start
        while j < self.n and self.source[j] not in "\n\r":
            j += 1
        return j

    def _is_terminator(self, j: int, eol: int) -> bool:
        if j >= eol:
            return True
        c = self.source[j]
        if c in ",}]#":
            return True
        return c == "/" and j + 1 < eol and self.source[j + 1] in "/*"

    def _read_quoteless(self) -> _Node:
        c = self._peek()
        if c in self.PUNCTUATORS:
            raise self._err(f"Found a punctuator character '{c}' when expecting a quoteless string (check your syntax)")
        start = self.i
        eol = self._line_end(start)
        if c == "-" or "0" <= c <= "9":
            parsed = HjsonNumberParser.try_parse(self.source[start:eol], stop_at_next=True)
            if parsed is not None:
                number, end = parsed
                self.i = start + end
                return _Node(Type.INT64 if isinstance(number, int) else Type.DOUBLE, number)
        if c in "tfn":
            # true, false or null directly followed by a punctuator or comment
            for j in range(start + 1, eol + 1):
                if not self._is_terminator(j, eol):
                    continue
                keyword = self.KEYWORDS.get(self.source[start:j].strip())
                if keyword is not None:
                    self.i = j
                    return _Node(*keyword)
        self.i = eol
        return _Node(Type.STRING, self.source[start:eol].strip())

    def _read_hex4(self) -> int:
        digits = self.source[self.i:self.i + 4]
        if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
            raise self._err("Bad \\u escape, expected 4 hex digits")
        self.i += 4
        return int(digits, 16)

    def _read_string(self) -> str:
        quote = self._take()
        buf: list[str] = []
        while True:
            c = self._take()
            if c == "":
                raise self._err("Unterminated string")
            if c == quote:
                return "".join(buf)
            if c in "\n\r":
                self.i -= 1
                raise self._err("Bad string containing newline")
            if c != "\\":
                buf.append(c)
                continue
            esc = self._take()
            if esc == "u":
                cp = self._read_hex4()
                if 0xD800 <= cp <= 0xDBFF and self.source.startswith("\\u", self.i):
                    save = self.i
                    self.i += 2
                    lo = self._read_hex4()
                    if 0xDC00 <= lo <= 0xDFFF:
                        cp = 0x10000 + ((cp - 0xD800) << 10) + (lo - 0xDC00)
                    else:
                        self.i = save
                buf.append(chr(cp))
                continue
            if esc not in self.ESCAPES:
                self.i -= 1
                raise self._err(f"Bad escape \\{esc}")
            buf.append(self.ESCAPES[esc])

    def _read_multiline(self) -> str:
        # Lines are indented at least as far as the opening quotes
        indent = self.i - (self.source.rfind("\n", 0, self.i) + 1)
        self.i += 3

        def skip_indent() -> None:
            skip = indent
            while skip > 0 and "" < self._peek() <= " " and self._peek() != "\n":
                self.i += 1
                skip -= 1

        while "" < self._peek() <= " " and self._peek() != "\n":
            self.i += 1
        if self._peek() == "\n":
            self.i += 1
            skip_indent()

        buf: list[str] = []
        triple = 0
        while True:
            c = self._peek()
            if c == "":
                raise self._err("Bad multiline string")
            if c == "'":
                triple += 1
                self.i += 1
                if triple == 3:
                    s = "".join(buf)
                    # remove last EOL
                    return s[:-1] if s.endswith("\n") else s
                continue
            buf.append("'" * triple)
            triple = 0
            self.i += 1
            if c == "\n":
                buf.append("\n")
                skip_indent()
            elif c != "\r":
                buf.append(c)

def unmarshal(data: str | bytes, options: DecoderOptions | None = None) -> Value:
    """
    Creates a Value tree from Hjson text.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise HjsonSyntaxError(f"Input is not valid UTF-8: {e.reason}", e.start) from e
    if data.startswith("\ufeff"):
        data = data[1:]
    return HjsonReader(data, options).read()
