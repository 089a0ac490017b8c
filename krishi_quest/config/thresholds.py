# fraction of quest steps that must be ticked before completion is allowed
COMPLETION_THRESHOLD = 0.75

# sustainability score earned per quest = floor(xp_reward / divisor)
SUSTAINABILITY_XP_DIVISOR = 2

DEFAULT_LEVEL = 1
DEFAULT_LANGUAGE = "hi"
DEFAULT_PRICE_UNIT = "quintal"
