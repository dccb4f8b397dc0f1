from agenda.triggers.matcher import PhraseTriggerMatcher

__all__ = ["PhraseTriggerMatcher"]
