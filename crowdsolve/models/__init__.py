from .user import User
from .models import Problem, Solution, ProblemUpvote, SolutionUpvote, SolutionComment
