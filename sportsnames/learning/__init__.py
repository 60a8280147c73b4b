from sportsnames.learning.batch_learner import BatchLearner, DrainResult, LearnerState
from sportsnames.learning.queue import LearningQueue

__all__ = ["BatchLearner", "DrainResult", "LearnerState", "LearningQueue"]
