from .methods import MethodConfig, MethodType, build_classifier, parse_method_options

__all__ = ["MethodType", "MethodConfig", "parse_method_options", "build_classifier"]
