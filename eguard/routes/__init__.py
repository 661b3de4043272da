"""eGuard route matching.

Public API:
    CompiledRoute  — one compiled secure-route rule
    compile_routes — validate + compile configured routes (raises ConfigError)
    RouteMatcher   — answers is_secure(path, method)
"""
from eguard.routes.matcher import CompiledRoute, RouteMatcher, compile_routes

__all__ = ["CompiledRoute", "RouteMatcher", "compile_routes"]
