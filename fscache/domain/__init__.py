"""Domain Layer: value objects, errors and the contracts adapters implement."""
