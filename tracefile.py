# tracefile.py
import logging
import re
from collections import namedtuple

logger = logging.getLogger(__name__)

INSTRUCTION = "I"
LOAD = "L"
STORE = "S"
MODIFY = "M"
DATA_KINDS = (LOAD, STORE, MODIFY)

MAX_ADDRESS = (1 << 64) - 1
_HEX = re.compile(r"[0-9a-fA-F]+")

AccessRecord = namedtuple("AccessRecord", "kind address size text")


class MalformedTraceLine(ValueError):
    def __init__(self, lineno, text, reason):
        super().__init__(f"line {lineno}: {reason}: {text!r}")
        self.lineno = lineno
        self.text = text
        self.reason = reason


def parse_trace_line(line, lineno=0):
    """
    Parse one line of a valgrind-style trace: `<kind> <hex-address>,<size>`.

    Returns an AccessRecord, or None for blank lines, instruction fetches and
    unrecognized kinds (the latter is logged). A data access whose address
    field is missing or not hexadecimal raises MalformedTraceLine.
    """
    text = line.rstrip("\r\n")
    body = text.lstrip()
    if not body:
        return None
    kind = body[0]
    if kind == INSTRUCTION:
        return None
    if kind not in DATA_KINDS:
        logger.warning("skipping unrecognized trace line %d: %r", lineno, text)
        return None

    _, space, rest = body.partition(" ")
    if not space:
        raise MalformedTraceLine(lineno, text, "missing address field")
    # the field ends at the next space or comma
    field, _, size_field = rest.split(" ", 1)[0].partition(",")
    if not _HEX.fullmatch(field):
        raise MalformedTraceLine(lineno, text, f"invalid hex address {field!r}")
    address = int(field, 16)
    if address > MAX_ADDRESS:
        raise MalformedTraceLine(lineno, text, "address does not fit in 64 bits")

    size_field = size_field.strip()
    size = int(size_field) if size_field.isdigit() else None
    return AccessRecord(kind, address, size, body)


def parse_trace(lines):
    records = []
    for lineno, line in enumerate(lines, start=1):
        record = parse_trace_line(line, lineno)
        if record is not None:
            records.append(record)
    return records


def read_trace(path):
    """
    Read and parse a whole trace file before anything is simulated.
    OSError and MalformedTraceLine propagate to the caller.
    """
    with open(path, "r", encoding="utf-8") as f:
        records = parse_trace(f)
    logger.info("read %d data accesses from %s", len(records), path)
    return records


def format_record(record):
    size = record.size if record.size is not None else 1
    return f" {record.kind} {record.address:x},{size}"


def write_trace(records, path):
    with open(path, "w") as f:
        for record in records:
            f.write(format_record(record) + "\n")
    return path


class TraceDriver:
    """
    Feeds trace records to a SimulationEngine in order.
    A Modify is two back-to-back accesses to the same address.
    """

    def __init__(self, engine, on_access=None):
        self.engine = engine
        self.on_access = on_access

    def replay(self, record):
        outcomes = [self.engine.simulate(record.address)]
        if record.kind == MODIFY:
            outcomes.append(self.engine.simulate(record.address))
        if self.on_access:
            self.on_access(record, outcomes)
        return outcomes

    def run(self, records):
        for record in records:
            self.replay(record)
        return self.engine.stats
