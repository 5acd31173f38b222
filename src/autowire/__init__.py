"""Autowire: compile-time dependency injection for Python applications.

Autowire scans source trees for classes and functions annotated with
``# autowire:provide`` or ``# autowire:invoke`` comments and generates a
single module that constructs every provided value in dependency order and
then runs the invocations. Wiring is resolved once, when the code is
generated, so the application runs plain Python with no container, proxies
or runtime lookups.

Key Features:
    - Class providers built from their annotated fields
    - Function providers called with their annotated parameters
    - Duplicate, missing and circular dependencies reported before anything is written
    - Deterministic output: identical sources always generate identical code

Basic Usage:
    >>> from dataclasses import replace
    >>> from autowire.builders import make_program
    >>> from autowire.scanner import scan
    >>>
    >>> parsed = scan("src/myapp")
    >>> code = make_program(replace(parsed, output_module="myapp.app_gen"))

The package consists of several core modules:
    - scanner: Discovery of annotated declarations
    - analyzer: Validation, ordering and naming of providers
    - generator: Rendering of the wiring module
    - resolver: Module short-name resolution
    - builders: High-level entry points
    - domain: Core domain models (TypeRef, Provider, Invocation)
    - errors: Autowire exceptions
"""
