"""Session orchestration and the UI bridge."""
