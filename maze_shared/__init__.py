"""Protocol and constants shared with the maze server."""
