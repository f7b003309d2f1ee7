from papertriage.application.prompts.registry import PromptRegistry, PromptTemplate

__all__ = ["PromptRegistry", "PromptTemplate"]
