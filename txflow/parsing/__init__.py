"""
Parsing Layer

Diagnostic trace lines -> invocation arena -> call forest.
"""
