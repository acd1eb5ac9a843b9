from brewmate.models.personalization import BrewHistoryRecord, RecipeProfileRecord, TasteProfileRecord

__all__ = ["BrewHistoryRecord", "RecipeProfileRecord", "TasteProfileRecord"]
