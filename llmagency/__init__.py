"""
llmagency - client-side orchestration for tool-calling chat completions.

This package submits role-tagged conversations to a remote completion
service, executes the client-side tools the model asks for, and feeds the
results back until the model produces a final answer.
"""

__version__ = "0.1.0"
