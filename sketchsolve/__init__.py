"""SketchSolve: sketch or photograph a math problem and get a worked solution."""

__version__ = "0.1.0"
