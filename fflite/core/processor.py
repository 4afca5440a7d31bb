import logging
from typing import Iterable, Iterator, Optional
from fflite.core.classifier import LineClassifier
from fflite.core.renderer import Renderer
from fflite.core.session import Session, transition


class StderrProcessor:
    """Runs classify -> transition -> render for every line of one ffmpeg invocation."""

    def __init__(
        self,
        session: Session,
        classifier: Optional[LineClassifier] = None,
        renderer: Optional[Renderer] = None,
        passthrough: bool = False,
    ):
        self.session = session
        self.classifier = classifier or LineClassifier()
        self.renderer = renderer or Renderer()
        self.passthrough = passthrough
        self.logger = logging.getLogger(__name__)

    def feed(self, line: str) -> str:
        """Processes one logical line and returns the text to write (may be empty)."""
        if self.passthrough:
            return line + "\n"

        session = self.session
        now = session.clock()
        previous_phase = session.phase
        item = self.classifier.classify(line, session.phase)
        transition(session, item, now, mapping_entry=self.classifier.looks_like_mapping_entry(line))
        if session.phase != previous_phase:
            self.logger.debug(f"Phase {previous_phase.value} -> {session.phase.value} on {item.kind.value}")
        return self.renderer.render(session, item, now)

    def process(self, lines: Iterable[str]) -> Iterator[str]:
        for line in lines:
            out = self.feed(line)
            if out:
                yield out
