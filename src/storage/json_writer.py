import json
import logging

logger = logging.getLogger(__name__)

ARRAY_OPEN = "[\n"
ARRAY_CLOSE = "\n]\n"
SEPARATOR = ",\n"


def serialize_record(record) -> str:
    """Pretty-print one record as an element of the top-level array."""
    if hasattr(record, "to_output_dict"):
        record = record.to_output_dict()
    record_json = json.dumps(record, indent=2, ensure_ascii=False)

    # Indent every line so the object lines up inside the array
    return "\n".join("  " + line if line else line for line in record_json.split("\n"))


class IncrementalJsonWriter:
    """
    Writes a JSON array to disk one element at a time.

    Nothing already written is read back or rewritten. Until `close` is called
    the file is an unterminated array.
    """

    def __init__(self, path):
        self.path = path
        self.count = 0

    def open(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(ARRAY_OPEN)
        self.count = 0
        logger.debug(f"Opened output file {self.path}")

    def append(self, record, is_first=None):
        if is_first is None:
            is_first = self.count == 0
        prefix = "" if is_first else SEPARATOR
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(prefix + serialize_record(record))
        self.count += 1

    def close(self):
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(ARRAY_CLOSE)
        logger.debug(f"Closed output file {self.path} with {self.count} records")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        # A failed run leaves the array unterminated, same as a crash
        if exc_type is None:
            self.close()
        return False
