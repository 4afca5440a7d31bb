import os
import re
from typing import Dict, List, Optional, Sequence

FILTER_RANGE_INPUTS_RE = re.compile(r"\[(\d+)-(\d+):(\d+)\]")
FILTER_RANGE_TRACKS_RE = re.compile(r"\[(\d+):(\d+)-(\d+)\]")
FILTER_RANGE_BOTH_RE = re.compile(r"\[(\d+)-(\d+):(\d+)-(\d+)\]")
NAME_PATTERN_SEPARATOR = "::"
PREFIX_SEPARATOR = "?"


def _span(start: int, end: int) -> range:
    step = 1 if start <= end else -1
    return range(start, end + step, step)


def expand_presets(args: Sequence[str], presets: Dict[str, str]) -> List[str]:
    """Replaces preset macros (e.g. `@crf18`) with the arguments they stand for."""
    compiled = [(re.compile(key), value) for key, value in presets.items()]
    out: List[str] = []
    for arg in args:
        replacement: Optional[List[str]] = None
        for pattern, template in compiled:
            match = pattern.fullmatch(arg)
            if match:
                replacement = match.expand(template).split()
                break
        out.extend(replacement if replacement is not None else [arg])
    return out


def expand_filter_ranges(text: str) -> str:
    """Expands stream ranges in filter graphs.

    `[0-1:1]` -> `[0:1][1:1]`, `[0:0-1]` -> `[0:0][0:1]`,
    `[0-1:2-3]` -> `[0:2][0:3][1:2][1:3]`. Descending ranges count down.
    """
    def inputs(match: re.Match) -> str:
        first, last, track = (int(g) for g in match.groups())
        if first == last:
            return match.group(0)
        return "".join(f"[{i}:{track}]" for i in _span(first, last))

    def tracks(match: re.Match) -> str:
        index, first, last = (int(g) for g in match.groups())
        if first == last:
            return match.group(0)
        return "".join(f"[{index}:{t}]" for t in _span(first, last))

    def both(match: re.Match) -> str:
        in1, in2, t1, t2 = (int(g) for g in match.groups())
        if in1 == in2 and t1 == t2:
            return match.group(0)
        return "".join(f"[{i}:{t}]" for i in _span(in1, in2) for t in _span(t1, t2))

    text = FILTER_RANGE_INPUTS_RE.sub(inputs, text)
    text = FILTER_RANGE_TRACKS_RE.sub(tracks, text)
    return FILTER_RANGE_BOTH_RE.sub(both, text)


def find_first_input(args: Sequence[str]) -> Optional[str]:
    for i, arg in enumerate(args[:-1]):
        if arg == "-i":
            return args[i + 1]
    return None


def first_input_position(args: Sequence[str]) -> Optional[int]:
    for i, arg in enumerate(args[:-1]):
        if arg == "-i":
            return i + 1
    return None


def find_inputs(args: Sequence[str]) -> List[str]:
    return [args[i + 1] for i, arg in enumerate(args[:-1]) if arg == "-i"]


def replace_first_input(args: Sequence[str], value: str) -> List[str]:
    out = list(args)
    position = first_input_position(out)
    if position is not None:
        out[position] = value
    return out


def expand_name_pattern(arg: str, first_input: str) -> str:
    """Resolves `[prefix?]old::new` against the first input's file name.

    The new name is the first input's base name with `old` replaced by `new`; it is
    placed in `prefix` when given, otherwise next to the first input.
    """
    if NAME_PATTERN_SEPARATOR not in arg:
        return arg
    prefix = None
    pattern = arg
    if PREFIX_SEPARATOR in pattern:
        prefix, pattern = pattern.split(PREFIX_SEPARATOR, 1)
    old, new = pattern.split(NAME_PATTERN_SEPARATOR, 1)
    directory, name = os.path.split(first_input)
    renamed = name.replace(old, new) if old else name + new
    return os.path.join(prefix if prefix is not None else directory, renamed)


def expand_name_patterns(args: Sequence[str]) -> List[str]:
    """Applies expand_name_pattern to every argument after the first input."""
    position = first_input_position(args)
    if position is None:
        return list(args)
    first_input = args[position]
    return list(args[:position + 1]) + [
        expand_name_pattern(arg, first_input) for arg in args[position + 1:]
    ]


def with_hide_banner(args: Sequence[str]) -> List[str]:
    if "-hide_banner" in args:
        return list(args)
    return ["-hide_banner", *args]


def quote_command(binary: str, args: Sequence[str]) -> str:
    parts = [binary]
    for arg in args:
        parts.append(f'"{arg}"' if " " in arg else arg)
    return " ".join(parts)


def prepare_arguments(args: Sequence[str], presets: Dict[str, str], hide_banner: bool = True) -> List[str]:
    """Preset macros and filter ranges, applied once before any batch expansion."""
    expanded = [expand_filter_ranges(arg) for arg in expand_presets(args, presets)]
    return with_hide_banner(expanded) if hide_banner else expanded
