"""Provider authentication and the interactive auth wizard."""
