"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the pool to the outside world (local disk, memory, configuration
files, the console) by implementing the interfaces defined in the domain layer.
"""
