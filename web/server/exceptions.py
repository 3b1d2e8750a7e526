class InvalidToken(Exception):
    message = "Invalid media id"


class FileNotFound(Exception):
    message = "File not found"


class RangeNotSatisfiable(Exception):
    message = "Range Not Satisfiable"

    def __init__(self, file_size: int):
        super().__init__(f"{self.message} (file size {file_size})")
        self.file_size = file_size


class StreamAborted(Exception):
    message = "Stream interrupted"
