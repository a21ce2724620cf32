# infrastructure/adapters/file_handlers/local_file_adapter.py
import os

from core.ports.file_handler_port import FileHandlerPort


class LocalFileAdapter(FileHandlerPort):
    def read_bytes(self, path: str) -> bytes:
        try:
            with open(path, 'rb') as file:
                return file.read()
        except FileNotFoundError:
            raise FileNotFoundError(f"File not found: {path}")
        except IOError as e:
            raise IOError(f"Error reading file: {str(e)}")

    def save_archive(self, directory: str, filename: str, data: bytes) -> str:
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, os.path.basename(filename))
        with open(path, 'wb') as file:
            file.write(data)
        return path
