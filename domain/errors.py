class DomainError(Exception):
    code = "E_DOMAIN"
    status = 400

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class UnauthenticatedError(DomainError):
    code = "E_UNAUTHENTICATED"
    status = 401


class InvalidInputError(DomainError):
    code = "E_INVALID_INPUT"
    status = 422


class StorageUnavailableError(DomainError):
    code = "E_STORAGE_UNAVAILABLE"
    status = 500


class NotFoundError(DomainError):
    code = "E_NOT_FOUND"
    status = 404


class NutritionNotFoundError(NotFoundError):
    code = "E_NUTRITION_NOT_FOUND"


class MealNotFoundError(NotFoundError):
    code = "E_MEAL_NOT_FOUND"


class WorkoutNotFoundError(NotFoundError):
    code = "E_WORKOUT_NOT_FOUND"


class ExerciseNotFoundError(NotFoundError):
    code = "E_EXERCISE_NOT_FOUND"


class ConfigurationError(DomainError):
    code = "E_CONFIGURATION"
    status = 500
