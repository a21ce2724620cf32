# infrastructure/session/session_manager.py
import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.domain.models import AnalysisFacet, AnalysisResult, ChatMessage, SourceFile

logger = logging.getLogger(__name__)


@dataclass
class ReviewSession:
    """Everything one browser session has uploaded, received, and discussed"""
    session_id: str
    archive_name: Optional[str] = None
    files: List[SourceFile] = field(default_factory=list)
    issue_description: str = ""
    facets: List[AnalysisFacet] = field(default_factory=list)
    report: Optional[AnalysisResult] = None
    conversation: object = None
    transcript: List[ChatMessage] = field(default_factory=list)
    fixed_files: Optional[List[SourceFile]] = None

    def reset(self):
        self.archive_name = None
        self.files = []
        self.issue_description = ""
        self.facets = []
        self.report = None
        self.conversation = None
        self.transcript = []
        self.fixed_files = None

    def begin_model_message(self):
        self.transcript.append(ChatMessage(role="model", content=""))

    def append_chunk(self, chunk: str):
        # ChatMessage is frozen, so the last message is replaced
        last = self.transcript[-1]
        self.transcript[-1] = ChatMessage(role=last.role, content=last.content + chunk)

    def record_model_error(self, text: str):
        last = self.transcript[-1] if self.transcript else None
        if last is not None and last.role == "model" and not last.content:
            self.transcript[-1] = ChatMessage(role="model", content=text)
        else:
            self.transcript.append(ChatMessage(role="model", content=text))


class SessionManager:
    """Manages review sessions in memory and expires idle ones"""

    def __init__(self, session_timeout=3600, cleanup_interval=300, start_cleanup=True):
        self.sessions: Dict[str, ReviewSession] = {}
        self.session_timestamps: Dict[str, float] = {}
        self.session_timeout = session_timeout
        self.cleanup_interval = cleanup_interval
        self.lock = threading.Lock()

        if start_cleanup:
            self._start_cleanup_thread()

    def create_session(self) -> ReviewSession:
        with self.lock:
            session_id = str(uuid.uuid4())
            session = ReviewSession(session_id=session_id)
            self.sessions[session_id] = session
            self.session_timestamps[session_id] = time.time()
            return session

    def get_session(self, session_id: str) -> Optional[ReviewSession]:
        """Get a session by ID and update its last activity timestamp"""
        with self.lock:
            if session_id in self.sessions:
                self.session_timestamps[session_id] = time.time()
                return self.sessions[session_id]
            return None

    def delete_session(self, session_id: str):
        with self.lock:
            self.sessions.pop(session_id, None)
            self.session_timestamps.pop(session_id, None)

    def cleanup_expired_sessions(self, now: Optional[float] = None) -> List[str]:
        current_time = now if now is not None else time.time()
        with self.lock:
            expired_sessions = [session_id for session_id, last_activity in self.session_timestamps.items()
                                if current_time - last_activity > self.session_timeout]
            for session_id in expired_sessions:
                logger.info("Removing expired session: %s", session_id)
                self.sessions.pop(session_id, None)
                self.session_timestamps.pop(session_id, None)
        return expired_sessions

    def _start_cleanup_thread(self):
        def cleanup_task():
            while True:
                time.sleep(self.cleanup_interval)
                try:
                    self.cleanup_expired_sessions()
                except Exception:
                    logger.exception("Error in session cleanup")

        cleanup_thread = threading.Thread(target=cleanup_task, daemon=True)
        cleanup_thread.start()
