# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Forge language-service core.

Analysis (`forge.pipeline.analyze_text`), execution
(`forge.runtime.run.run_source`) and editor intelligence
(`forge.editor`) live under this package. The CLI entrypoint is
`forge.cli:main`.
"""

__version__ = "0.4.0"

__all__ = ["__version__"]
