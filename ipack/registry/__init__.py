"""Registry: the alias index and artifact storage layer.

The registry provides:
- Records: alias -> (package name, integer version)
- Artifact naming: deterministic archive file names per alias and version
- Storage: a single JSON document rewritten atomically on every update
"""
