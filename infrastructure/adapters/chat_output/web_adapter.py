# infrastructure/adapters/chat_output/web_adapter.py
from core.ports.chat_output_port import ChatOutputPort


class WebChatAdapter(ChatOutputPort):
    def __init__(self, socketio, room=None):
        self.socketio = socketio
        self.room = room

    def for_room(self, room) -> "WebChatAdapter":
        return WebChatAdapter(self.socketio, room)

    def display_message(self, message: str):
        """Send a complete message to the client via Socket.IO"""
        self.socketio.emit('assistant_response', {'content': message, 'complete': True}, room=self.room)

    def stream_chunk(self, chunk: str):
        self.socketio.emit('assistant_chunk', {'content': chunk}, room=self.room)

    def complete(self):
        self.socketio.emit('assistant_response_complete', {'status': 'complete'}, room=self.room)

    def error(self, message: str):
        self.socketio.emit('error', {'message': message}, room=self.room)

    def get_user_input(self, prompt: str) -> str:
        """
        This method is not used in web context since inputs come from HTTP requests
        or WebSocket events rather than being requested directly
        """
        raise NotImplementedError("This method is not applicable for web contexts")
