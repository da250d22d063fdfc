# Example of running onboarding classification and the first daily challenge together

import asyncio

from challenges import ChallengeProof, ChallengeSelector, InMemoryChallengeTracker, UserChallengeContext
from classifiers import BusinessClassifier


async def run_onboarding_with_first_challenge():
    """Classify a new user, route them and issue today's challenge"""

    classifier = BusinessClassifier()
    selector = ChallengeSelector()
    tracker = InMemoryChallengeTracker()

    # Sample onboarding answers
    user_answers = {
        "business_description": "Specialty coffee roaster selling wholesale and online",
        "main_challenge": "Not enough wholesale leads",
        "business_experience": "Hired two roasters last year, building a process for fulfilment",
        "monthly_revenue": "10k-50k",
        "metrics_knowledge": "intermediate",
        "primary_constraint": "leads",
    }

    # Step 1: Classify and route
    result = classifier.classify_answers(user_answers)
    print(f"Sophistication: {result.score.total} ({result.level.value})")
    print(f"Constraint: {result.constraint.value.value} ({result.constraint.confidence}%)")
    print(f"Next route: {result.route.value}")

    # Step 2: Issue the first daily challenge
    context = UserChallengeContext.from_mapping(
        {
            "user_id": "demo-user",
            "business_tier": "level1",
            "primary_constraint": result.constraint,
            "current_streak": await tracker.current_streak("demo-user"),
        }
    )
    challenge = selector.select(context)
    await tracker.record_issued(context.user_id, challenge)
    print(f"\nToday's challenge: {challenge.title} [{challenge.difficulty.value}, {challenge.xp_reward} XP]")
    print(challenge.success_criteria)

    # Step 3: Complete it
    await tracker.complete_challenge(challenge.id, proof=ChallengeProof(type="boolean", value=True))
    progress = await tracker.progress(context.user_id)

    return {
        "decision": result.to_dict(),
        "challenge": challenge.to_dict(),
        "progress": progress.to_dict(),
    }


# Test the integration
if __name__ == "__main__":
    outcome = asyncio.run(run_onboarding_with_first_challenge())
    print("Final Integration Result:", outcome["progress"])
