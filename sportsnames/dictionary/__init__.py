from sportsnames.dictionary.static_dictionary import StaticDictionary, StaticEntry

__all__ = ["StaticDictionary", "StaticEntry"]
