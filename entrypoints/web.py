# entrypoints/web.py
import io
import logging
import os
import threading

from flask import Flask, request, jsonify, send_file, session as flask_session
from flask_socketio import SocketIO, emit, join_room

from application.use_cases.conversation import CHAT_FAILED_MESSAGE, GREETING
from core.domain.errors import ForensicsError, ValidationError
from core.domain.models import AnalysisFacet, ChatMessage
from infrastructure.di.container import build_container
from infrastructure.session.session_manager import SessionManager

logger = logging.getLogger(__name__)


class WebApp:
    """Web application for the forensic code reviewer."""

    def __init__(self, container=None, start_session_cleanup=True):
        self.app = Flask(__name__)
        self.app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY') or os.urandom(24)
        self.app.config['PERMANENT_SESSION_LIFETIME'] = 3600

        self.socketio = SocketIO(self.app, cors_allowed_origins="*", manage_session=False)

        # Set up DI container
        self.container = container or build_container({"context": "web"})
        self.container.socketio.override(self.socketio)
        self.app.config['MAX_CONTENT_LENGTH'] = (self.container.config.max_upload_mb() + 1) * 1024 * 1024

        # Fail fast on missing credentials
        self.container.model_client()

        self.file_adapter = self.container.file_handler()
        self.chat_adapter = self.container.chat_output()
        self.archive = self.container.archive()
        self.analysis_uc = self.container.analysis_uc()
        self.code_fix_uc = self.container.code_fix_uc()
        self.conversation_uc = self.container.conversation_uc()
        self.session_manager = SessionManager(
            session_timeout=self.container.config.session_timeout(),
            start_cleanup=start_session_cleanup
        )

        self._register_routes()
        self._register_socket_events()

    def _current_session(self):
        session_id = get_session_id_from_request()
        if not session_id:
            return None
        return self.session_manager.get_session(session_id)

    def _register_routes(self):
        """Register all HTTP routes."""

        @self.app.errorhandler(ValidationError)
        def handle_validation_error(e):
            return jsonify({'error': str(e)}), 400

        @self.app.errorhandler(ForensicsError)
        def handle_review_error(e):
            self.app.logger.error(f"Review request failed: {str(e)}")
            return jsonify({'error': str(e)}), 502

        @self.app.route('/api/health-check', methods=['GET'])
        def health_check():
            return jsonify({"status": "ok"})

        @self.app.route('/api/sessions', methods=['POST'])
        def create_session():
            """Create a new review session."""
            review_session = self.session_manager.create_session()
            flask_session['review_session_id'] = review_session.session_id
            return jsonify({'session_id': review_session.session_id})

        @self.app.route('/api/analyze', methods=['POST'])
        def analyze():
            """Extract an uploaded project archive, analyze it, and open a conversation."""
            review_session = self._current_session()
            if not review_session:
                return jsonify({'error': 'No active session'}), 400

            facet_values = request.form.getlist('facets[]') or request.form.getlist('facets')
            try:
                facets = [AnalysisFacet(value) for value in facet_values]
            except ValueError:
                return jsonify({'error': 'Unknown analysis type'}), 400
            if not facets:
                return jsonify({'error': 'Please select at least one analysis type.'}), 400

            data, filename = self.file_adapter.read_upload(request.files.get('file'))
            issue_description = request.form.get('issue_description', '')

            review_session.reset()
            files = self.archive.extract(data)
            report = self.analysis_uc.analyze(files, issue_description, facets)

            review_session.archive_name = filename
            review_session.files = files
            review_session.issue_description = issue_description
            review_session.facets = facets
            review_session.report = report
            review_session.conversation = self.conversation_uc.start_conversation(files, issue_description)
            review_session.transcript = [ChatMessage(role="model", content=GREETING)]

            return jsonify({
                'session_id': review_session.session_id,
                'report': report.to_dict(),
                'files': [{'filename': file.name, 'size': len(file.content)} for file in files],
                'count': len(files),
                'greeting': GREETING
            })

        @self.app.route('/api/fixes', methods=['POST'])
        def generate_fixes():
            """Ask the model to apply its report and keep only substantive changes."""
            review_session = self._current_session()
            if not review_session or review_session.report is None:
                return jsonify({'error': 'Run an analysis first'}), 400

            review_session.fixed_files = None
            fixed_files = self.code_fix_uc.generate_fixes(review_session.files, review_session.report)
            review_session.fixed_files = fixed_files

            return jsonify({
                'files': [{'filename': file.name, 'size': len(file.content)} for file in fixed_files],
                'count': len(fixed_files),
                'message': (f"Success! {len(fixed_files)} file(s) have been modified." if fixed_files
                            else "Analysis complete. The AI found no necessary code changes.")
            })

        @self.app.route('/api/download', methods=['GET'])
        def download():
            """Download the changed files, or a summary when nothing changed."""
            review_session = self._current_session()
            if not review_session or review_session.fixed_files is None:
                return jsonify({'error': 'Generate fixes first'}), 400

            data, name = self.archive.create(
                review_session.fixed_files,
                self.file_adapter.download_name(review_session.archive_name)
            )
            return send_file(io.BytesIO(data), mimetype='application/zip',
                             as_attachment=True, download_name=name)

        @self.app.route('/api/project', methods=['GET'])
        def get_project_files():
            """Get information about all files of the current review."""
            review_session = self._current_session()
            if not review_session:
                return jsonify({'error': 'No active session'}), 400

            files = [{'filename': file.name, 'size': len(file.content)} for file in review_session.files]
            return jsonify({
                'files': files,
                'count': len(files),
                'session_id': review_session.session_id
            })

        @self.app.route('/api/chat/history', methods=['GET'])
        def get_chat_history():
            review_session = self._current_session()
            if not review_session:
                return jsonify({'error': 'No active session'}), 400
            return jsonify({
                'history': [{'role': message.role, 'content': message.content}
                            for message in review_session.transcript]
            })

    def _register_socket_events(self):
        """Register all Socket.IO event handlers for the web application."""

        @self.socketio.on('connect')
        def handle_connect():
            logger.debug('Client connected')

        @self.socketio.on('disconnect')
        def handle_disconnect():
            logger.debug('Client disconnected')

        @self.socketio.on('join_session')
        def handle_join_session(data):
            """Put the client in the Socket.IO room of its review session."""
            session_id = (data or {}).get('session_id')
            if not session_id or not self.session_manager.get_session(session_id):
                emit('session_joined', {'status': 'error', 'message': 'Invalid session'})
                return

            join_room(session_id)
            flask_session['review_session_id'] = session_id
            emit('session_joined', {'status': 'success'})

        @self.socketio.on('user_message')
        def handle_message(data):
            """
            Stream the model's answer to a follow-up question.

            Parameters:
            - data: Dictionary containing:
              - session_id: The session identifier
              - message: The text message from the user
            """
            session_id = (data or {}).get('session_id')
            message = (data or {}).get('message')
            if not session_id or not message:
                emit('error', {'message': 'Invalid request parameters'})
                return

            review_session = self.session_manager.get_session(session_id)
            if not review_session:
                emit('error', {'message': 'Invalid session'})
                return
            if review_session.conversation is None:
                emit('error', {'message': 'Run an analysis before chatting'})
                return

            try:
                stream = self.conversation_uc.send_message(review_session.conversation, message)
            except ValidationError as e:
                emit('error', {'message': str(e)})
                return

            review_session.transcript.append(ChatMessage(role="user", content=message))
            emit('message_received', {'status': 'processing'})
            self._stream_reply_async(review_session, stream)

    def _stream_reply_async(self, review_session, stream):
        """Relay the reply stream to the session room from a separate thread."""
        web_chat_adapter = self.chat_adapter.for_room(review_session.session_id)

        def process_task():
            review_session.begin_model_message()
            try:
                for chunk in stream:
                    review_session.append_chunk(chunk)
                    web_chat_adapter.stream_chunk(chunk)
                web_chat_adapter.complete()
            except ForensicsError as e:
                logger.error("Error generating response: %s", e)
                review_session.record_model_error(f"Sorry, I ran into an error: {e}")
                web_chat_adapter.error(str(e))
            except Exception:
                logger.exception("Unexpected error while streaming a reply")
                review_session.record_model_error(f"Sorry, I ran into an error: {CHAT_FAILED_MESSAGE}")
                web_chat_adapter.error(CHAT_FAILED_MESSAGE)
            finally:
                stream.close()

        thread = threading.Thread(target=process_task, daemon=True)
        thread.start()
        return thread

    def run(self, debug=False, host='0.0.0.0', port=5000):
        """Run the application."""
        self.socketio.run(self.app, debug=debug, host=host, port=port)


def get_session_id_from_request():
    """Extract session ID from request - either from Flask session or X-Session-Id header"""
    session_id = flask_session.get('review_session_id')

    if not session_id and 'X-Session-Id' in request.headers:
        session_id = request.headers.get('X-Session-Id')
        if session_id:
            flask_session['review_session_id'] = session_id

    return session_id


def create_app(container=None, start_session_cleanup=True):
    """Factory function to create and initialize the application."""
    web_app = WebApp(container=container, start_session_cleanup=start_session_cleanup)
    return web_app.app, web_app.socketio, web_app


if __name__ == '__main__':
    logging.basicConfig(level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app, socketio, web_app = create_app()
    web_app.run()
