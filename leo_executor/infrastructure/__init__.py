"""
Executor Infrastructure Layer

Adapters implementing the domain ports: processes, workspaces,
toolchain backends, configuration and logging.
"""
