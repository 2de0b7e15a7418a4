"""
chat-cache: in-process session/message cache and token-budgeted
conversation assembler for a chat application backed by a partitioned
document store and a language-model completion endpoint.
"""

__version__ = "1.0.0"
