from .interactions import InteractionType, filter_input_data, signal_filter_for

__all__ = ["InteractionType", "filter_input_data", "signal_filter_for"]
