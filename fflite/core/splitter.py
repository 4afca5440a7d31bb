from typing import BinaryIO, Iterator, Optional, Tuple

PROMPT_MARKER = b"[y/N] "


def _drop_cr(data: bytes) -> bytes:
    while data.endswith(b"\r"):
        data = data[:-1]
    return data


def split_token(data: bytes, at_eof: bool) -> Tuple[int, Optional[bytes]]:
    """Finds the next logical line in data.

    Returns (advance, token). A token of None with advance 0 means more data is needed.
    Boundaries: CR, CRLF, LF, and the ffmpeg `[y/N] ` prompt when no line break is
    buffered. A CR that ends the buffer is a boundary right away; ffmpeg writes nothing
    after a stats line until the next update.
    """
    if at_eof and not data:
        return 0, None

    cr = data.find(b"\r")
    lf = data.find(b"\n")
    if cr >= 0 and (lf < 0 or cr < lf):
        if data[cr + 1:cr + 2] == b"\n":
            return cr + 2, _drop_cr(data[:cr])
        return cr + 1, _drop_cr(data[:cr])
    if lf >= 0:
        return lf + 1, _drop_cr(data[:lf])

    prompt = data.find(PROMPT_MARKER)
    if prompt >= 0:
        end = prompt + len(PROMPT_MARKER)
        return end, data[:end]

    if at_eof:
        return len(data), _drop_cr(data)
    return 0, None


def iter_lines(stream: BinaryIO, chunk_size: int = 4096, encoding: str = "utf-8") -> Iterator[str]:
    """Yields decoded logical lines from a binary stream until it closes."""
    read = getattr(stream, "read1", None) or stream.read
    buffer = b""
    at_eof = False
    # Set when the last token ended on a CR at the buffer edge.
    pending_cr = False
    while True:
        if pending_cr and buffer:
            # The LF of a CRLF split across reads.
            if buffer.startswith(b"\n"):
                buffer = buffer[1:]
            pending_cr = False
        advance, token = split_token(buffer, at_eof)
        if token is not None:
            pending_cr = advance == len(buffer) and buffer.endswith(b"\r")
            buffer = buffer[advance:]
            if at_eof and not token and not buffer:
                return
            yield token.decode(encoding, errors="replace")
            continue
        if at_eof:
            return
        chunk = read(chunk_size)
        if not chunk:
            at_eof = True
        else:
            buffer += chunk
