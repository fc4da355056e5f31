"""Diamond Maze game client."""
