import math

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

class HjsonNumberParser:
    @staticmethod
    def try_parse(text: str, stop_at_next: bool = False) -> tuple[int | float, int] | None:
        """
        Reads exactly one number from the text, optionally followed by whitespace.

        With stop_at_next, a following punctuator (, } ]) or comment start
        counts as the end of the text. Returns the value and the offset just
        past the numeral, or None if the text is not a valid number.
        """
        n = len(text)
        at = 0
        ch = " "

        def next_char() -> bool:
            nonlocal at, ch
            if at < n:
                ch = text[at]
                at += 1
                return True
            if at == n:
                at += 1
                ch = ""
            return False

        leading_zeros = 0
        test_leading = True

        next_char()
        if ch == "-":
            next_char()

        while "0" <= ch <= "9":
            if test_leading:
                if ch == "0":
                    leading_zeros += 1
                else:
                    test_leading = False
            next_char()

        # single 0 is allowed
        if test_leading:
            leading_zeros -= 1

        if ch == ".":
            while next_char() and "0" <= ch <= "9":
                pass
        if ch in ("e", "E"):
            next_char()
            if ch in ("-", "+"):
                next_char()
            while "0" <= ch <= "9":
                next_char()

        end = at - 1

        while ch and ch <= " ":
            next_char()

        if stop_at_next:
            if ch in (",", "}", "]", "#") or (ch == "/" and at < n and text[at] in "/*"):
                ch = ""

        if ch or leading_zeros != 0:
            return None

        numeral = text[:end]
        value = HjsonNumberParser._parse_int64(numeral)
        if value is None:
            value = HjsonNumberParser._parse_double(numeral)
            if value is None:
                return None
        return value, end

    @staticmethod
    def starts_with_number(text: str) -> bool:
        return HjsonNumberParser.try_parse(text, stop_at_next=True) is not None

    @staticmethod
    def parse_value(text: str) -> int | float | None:
        result = HjsonNumberParser.try_parse(text)
        return None if result is None else result[0]

    @staticmethod
    def _parse_int64(numeral: str) -> int | None:
        digits = numeral[1:] if numeral.startswith("-") else numeral
        if not digits or not all("0" <= c <= "9" for c in digits):
            return None
        value = int(numeral)
        if value < INT64_MIN or value > INT64_MAX:
            return None
        return value

    @staticmethod
    def _parse_double(numeral: str) -> float | None:
        try:
            value = float(numeral)
        except ValueError:
            return None
        if math.isinf(value) or math.isnan(value):
            return None
        return value
