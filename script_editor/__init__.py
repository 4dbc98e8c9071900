"""
Script Editor Module

A text-driven video editor core for ScriptCut. The edit is written as a
plain-text script (header, ``===``, body) and recompiled into video
segments and caption scene blocks.

Usage:
    python -m script_editor.app my_edit.scut

Or embed an EditSession and feed it text from any editor widget.
"""

__version__ = "1.0.0"
__author__ = "ScriptCut Team"
