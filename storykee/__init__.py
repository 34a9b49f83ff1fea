# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
storykee: front end for the Storykee narrative scripting language.

Subpackages:
  core: source locations and diagnostics
  parser: grammar, AST, AST builder, parse facade and pretty printer

The CLI entrypoint is `storykee.storykeec:main`.
"""

__all__ = ["core", "parser"]
