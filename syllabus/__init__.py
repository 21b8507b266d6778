"""Syllabus curriculum site generator.

Builds a static curriculum site from Markdown lessons and a YAML content
registry. Lesson elements are styled through a fixed rule per element kind,
and navigation pages list the entries of one registry group each.

The main entry point is the CLI module, which provides commands for
scaffolding new projects, building sites, running the development server
and managing lessons and navigation groups.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
