"""
rotelib: markup-to-EPUB compiler for the rote toolchain.

Public API:
    from rotelib.config import BookPlan
    from rotelib.resolve import find_plan
    from rotelib.compiler import compile_plan, compile_text
    from rotelib.builders import BUILDERS
    from rotelib.lint import Linter
"""
