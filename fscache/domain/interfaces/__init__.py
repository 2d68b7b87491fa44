"""Domain Interfaces (Ports):

Defines the contracts (Abstract Base Classes) that infrastructure components
must implement. The pool logic depends on these interfaces, not on concrete
storage implementations.
"""
