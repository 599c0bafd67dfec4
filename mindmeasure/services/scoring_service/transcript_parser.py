"""Transcript parser - turns a speaker-tagged transcript into turns.

Transcripts arrive from the conversation subsystem as newline-separated
lines of the form ``<role>: <text>`` with role ``agent`` or ``user``
(case-insensitive). Lines without a recognised tag are continuation text
or noise and are skipped rather than rejected.
"""
import logging
import re
from typing import List

from mindmeasure.shared.models import Speaker, Turn

logger = logging.getLogger(__name__)


TURN_PATTERN = re.compile(r"^\s*(agent|user)\s*:(.*)$", re.IGNORECASE)


class TranscriptParser:
    """Pure parser over transcript text. Total over its input domain."""

    def parse_turns(self, transcript: str) -> List[Turn]:
        """Parse every tagged line into a Turn, preserving order.

        Args:
            transcript: Raw transcript text

        Returns:
            Ordered turns; text is trimmed but keeps its original case
        """
        if not transcript:
            return []

        turns = []
        skipped = 0
        for line in transcript.splitlines():
            match = TURN_PATTERN.match(line)
            if match is None:
                skipped += 1
                continue
            turns.append(Turn(
                speaker=Speaker(match.group(1).lower()),
                text=match.group(2).strip(),
            ))

        logger.debug(
            "TRANSCRIPT_TURNS_PARSED",
            extra={"turn_count": len(turns), "skipped_lines": skipped}
        )
        return turns

    def parse_user_utterances(self, transcript: str) -> List[str]:
        """Extract user-authored utterances, trimmed and lower-cased.

        Empty utterances (``user:`` with nothing after it) are kept so that
        positions stay aligned with the conversation script.
        """
        return [
            turn.text.lower()
            for turn in self.parse_turns(transcript)
            if turn.speaker == Speaker.USER
        ]


def parse_user_utterances(transcript: str) -> List[str]:
    """Convenience function for one-off parsing."""
    return TranscriptParser().parse_user_utterances(transcript)
