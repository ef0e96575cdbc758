"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the design API over HTTP,
configuration files, the console) by implementing the interfaces defined
in the domain layer.
"""
