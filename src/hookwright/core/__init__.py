"""
Core Package.

Contains the interception machinery:
- Capability Introspector
- Hook contract and method-bag binding
- Call-Interception Wrapper
- Decoration Engine
- Call Tracer
"""
