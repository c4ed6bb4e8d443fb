from dataclasses import dataclass

@dataclass
class DecoderOptions:
    # Keep comments and attach them to the values they belong to.
    comments: bool = True
    # Raise a syntax error when an object repeats a key.
    duplicate_key_exception: bool = False

@dataclass
class EncoderOptions:
    # End of line, should be either \n or \r\n
    eol: str = "\n"
    # Place braces on the same line as the key
    braces_same_line: bool = True
    # Always place string values in double quotation marks
    quote_always: bool = False
    # Always place keys in quotes
    quote_keys: bool = False
    # Indent string
    indent_by: str = "  "
    # Allow the -0 value
    allow_minus_zero: bool = False
    # Encode undefined values as null
    unknown_as_null: bool = False
    # Output a comma separator between elements. Forces quotes on strings.
    separator: bool = False
    # Emit map members in insertion order instead of alphabetical key order
    preserve_insertion_order: bool = True
    # Omit the braces of a root object (or the brackets of a root array)
    omit_root_braces: bool = False
    # Write the comments attached to values
    comments: bool = True
    # Allow ''' strings for values spanning several lines
    multiline: bool = True

def default_options() -> EncoderOptions:
    return EncoderOptions()

def json_options() -> EncoderOptions:
    return EncoderOptions(
        braces_same_line=True,
        quote_always=True,
        quote_keys=True,
        unknown_as_null=True,
        separator=True,
        comments=False,
        multiline=False,
    )
