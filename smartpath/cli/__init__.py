"""Terminal front end for smartpath."""
