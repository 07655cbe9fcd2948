from okr_coach.services.coaching_service import CoachingService

__all__ = ["CoachingService"]
