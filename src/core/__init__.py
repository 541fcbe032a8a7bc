"""Core domain package for the hybrid mount console.

Core holds the codec, domain dataclasses, ports, locale registry and toast
queue without any knowledge of how commands reach the privileged daemon,
keeping the business logic testable with in-process fakes.
"""
