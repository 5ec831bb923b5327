"""
Layout Layer

Stateless derivation of node positions, execution states and edges for
the four layout modes.
"""
