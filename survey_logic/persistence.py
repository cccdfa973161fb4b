"""
Per-turn storage of respondent navigation states.

Every accepted answer produces one JSON snapshot of the NavigationState.
The highest-numbered snapshot is the session's current position; older
ones stay on disk as the respondent's history.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from survey_logic.commands import NavigationState

logger = logging.getLogger(__name__)


class SessionPersistence:
    """
    Directory of session snapshots, one subdirectory per respondent:

        <base_dir>/SESSION-<id>/SESSION-<id>_TURN-000.json   (after start)
        <base_dir>/SESSION-<id>/SESSION-<id>_TURN-001.json   (first answer)

    A turn number is written at most once. Two requests that both advance
    from the same turn race for the same file name and only one wins.
    """

    def __init__(self, base_dir: str = "outputs/sessions"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Session snapshots stored under {self.base_dir}")

    def save_turn(self, session_id: str, state: NavigationState) -> str:
        """
        Store the state reached after state.turn_count answers.

        Returns:
            str: Absolute path of the snapshot

        Raises:
            ValueError: If session_id is empty or contains a path separator
            FileExistsError: If this turn was already stored for the session
        """
        session_dir = self._session_dir(session_id)
        session_dir.mkdir(exist_ok=True)
        target = session_dir / self._turn_filename(session_id, state.turn_count)

        fd, tmp_path = tempfile.mkstemp(dir=session_dir, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(state.to_json(), f, indent=2, ensure_ascii=False)
            # link() refuses an existing name, so a losing writer never clobbers
            os.link(tmp_path, target)
        except FileExistsError:
            raise FileExistsError(
                f"Session {session_id} already has turn {state.turn_count} ({target.name})"
            ) from None
        finally:
            os.unlink(tmp_path)

        logger.info(f"Session {session_id}: stored turn {state.turn_count}")
        return str(target.absolute())

    def load_latest_turn(self, session_id: str) -> Optional[NavigationState]:
        """
        Current position of a session.

        Returns:
            NavigationState from the highest turn, or None for an unknown session

        Raises:
            ValueError: If session_id is invalid or the snapshot is malformed
        """
        turn_files = self._turn_files(session_id)
        if not turn_files:
            logger.warning(f"Session {session_id}: no stored turns")
            return None

        latest = max(turn_files, key=self._turn_number)
        with open(latest, 'r', encoding='utf-8') as f:
            data = json.load(f)

        logger.debug(f"Session {session_id}: resuming from {latest.name}")
        return NavigationState.from_json(data)

    def session_exists(self, session_id: str) -> bool:
        return bool(self._turn_files(session_id))

    def get_turn_count(self, session_id: str) -> int:
        """Number of stored snapshots, including the turn-0 start state."""
        return len(self._turn_files(session_id))

    # ========================
    # Private Helpers
    # ========================

    def _session_dir(self, session_id: str) -> Path:
        if not session_id or Path(session_id).name != session_id:
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.base_dir / f"SESSION-{session_id}"

    @staticmethod
    def _turn_filename(session_id: str, turn: int) -> str:
        return f"SESSION-{session_id}_TURN-{turn:03d}.json"

    @staticmethod
    def _turn_number(path: Path) -> int:
        # Turn numbers outgrow the zero padding after 999
        return int(path.stem.rsplit("-", 1)[1])

    def _turn_files(self, session_id: str) -> List[Path]:
        session_dir = self._session_dir(session_id)
        if not session_dir.is_dir():
            return []
        return list(session_dir.glob(f"SESSION-{session_id}_TURN-*.json"))
