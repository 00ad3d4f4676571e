# callcore/core/__init__.py
"""
Core: parsing and policy. No transport or process concerns.

- types:   ToolInvocation / ToolResult envelopes
- errors:  stable codes and exception types
- parser:  embedding / text / router
- tsd:     TSD models, store, rate limiter, elevation, applier
- hooks:   pre/post hook registry and built-ins
- tools:   ToolSpec and ToolRegistry
"""
