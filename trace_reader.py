# trace_reader.py
import re
from collections import namedtuple

from cache import ADDRESS_SIZE, Operation

TraceRecord = namedtuple("TraceRecord", ["line_number", "operation", "address"])

_hex_re = re.compile(r"^(?:0[xX])?([0-9a-fA-F]+)$")


class MalformedInputError(ValueError):
    def __init__(self, message, line_number=None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def parse_operation(text, line_number=None):
    try:
        return Operation(text.lower())
    except ValueError:
        raise MalformedInputError(f"unrecognized operation {text!r}", line_number) from None


def parse_address(text, line_number=None):
    """Hex text such as '0x0000001f' or '1f' -> unsigned int."""
    match = _hex_re.match(text)
    if not match:
        raise MalformedInputError(f"can't parse address {text!r}", line_number)
    address = int(match.group(1), 16)
    if address >= 1 << ADDRESS_SIZE:
        raise MalformedInputError(f"address {text} is wider than {ADDRESS_SIZE} bits", line_number)
    return address


def parse_line(line, line_number=None):
    """
    Decode one trace line into a list of (operation, address) pairs.

    A line holds one or more "<op> <address>" pairs, e.g. "r 0x1000 w 0x2004".
    Comment lines (starting with '#', such as "#eof") and blank lines give [].
    """
    if line.lstrip().startswith("#"):
        return []
    fields = line.split()
    if len(fields) % 2:
        raise MalformedInputError(f"operation {fields[-1]!r} has no address", line_number)
    return [
        (parse_operation(op, line_number), parse_address(addr, line_number))
        for op, addr in zip(fields[::2], fields[1::2])
    ]


def iter_records(lines):
    for line_number, line in enumerate(lines, start=1):
        for operation, address in parse_line(line, line_number):
            yield TraceRecord(line_number, operation, address)


def read_trace(source):
    """
    Yield TraceRecords from a trace file path or an open text file.
    A whole line is validated before any of its records are handed out.
    """
    if hasattr(source, "read"):
        yield from iter_records(source)
        return
    with open(source, "r") as f:
        yield from iter_records(f)
