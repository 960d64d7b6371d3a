"""
Orchestration Context

Responsibilities:
- Classifies changed files into conversion tasks
- Guarantees at most one conversion pipeline runs at a time
- Dispatches tasks to the rendering context's converters
- Runs the watch loop, or a single build, depending on the run mode

Owns: the single-flight gate, the watch loop, run-mode selection
Never: Renders anything itself
"""
