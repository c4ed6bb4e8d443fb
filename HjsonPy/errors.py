class HjsonError(Exception):
    pass

class HjsonSyntaxError(HjsonError, ValueError):
    def __init__(self, msg: str, offset: int = 0, line: int = 1, column: int = 1):
        super().__init__(f"{msg} at line {line}, column {column}")
        self.msg = msg
        self.offset = offset
        self.line = line
        self.column = column

class TypeMismatch(HjsonError, TypeError):
    pass

class IndexOutOfBounds(HjsonError, IndexError):
    pass

class HjsonFileError(HjsonError, OSError):
    pass
