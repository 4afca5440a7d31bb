import csv
import glob
import re
from pathlib import Path
from typing import List
from pydantic import BaseModel, Field

LIST_PREFIX = "list:"
LIST_FILE_SUFFIX = ".txt"
GLOB_MAGIC_RE = re.compile(r"[*?[]")


class InputSource(BaseModel):
    """Input files an fflite run iterates over."""
    paths: List[str] = Field(default_factory=list)
    batch: bool = False


def read_list_file(path: Path) -> List[str]:
    with open(path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def parse_inline_list(value: str) -> List[str]:
    """Parses `list:a.mp4 b.mp4 "c d.mp4"` into its file names."""
    text = value[len(LIST_PREFIX):].strip()
    if not text:
        return []
    row = next(csv.reader([text], delimiter=" ", skipinitialspace=True), [])
    return [field for field in row if field]


def expand_inputs(value: str) -> InputSource:
    """Expands the first input argument into one or more input files.

    `.txt` files are read as lists, `list:` values are parsed inline and glob patterns
    are matched against the file system. Anything else is a single input.
    """
    if value.startswith(LIST_PREFIX):
        return InputSource(paths=parse_inline_list(value), batch=True)
    if value.lower().endswith(LIST_FILE_SUFFIX) and Path(value).is_file():
        return InputSource(paths=read_list_file(Path(value)), batch=True)
    if GLOB_MAGIC_RE.search(value):
        return InputSource(paths=sorted(glob.glob(value)), batch=True)
    return InputSource(paths=[value], batch=False)
