"""Built-in exercise catalog used for form guides and knowledge seeding."""

from coach_ai.models import Exercise

EXERCISE_LIBRARY: list[Exercise] = [
    Exercise(
        id="bench-press",
        name="Barbell Bench Press",
        muscle_group="Chest",
        secondary_muscles=["Shoulders", "Arms"],
        equipment="Barbell",
        difficulty="Intermediate",
        form_guide=[
            "Lie on the bench with your eyes under the bar.",
            "Grip the bar slightly wider than shoulder-width.",
            "Unrack the bar and lower it slowly to your mid-chest.",
            "Press the bar back up explosively to the starting position.",
        ],
        common_mistakes=[
            "Flaring elbows out too wide.",
            "Bouncing the bar off the chest.",
            "Lifting hips off the bench.",
        ],
        tips=[
            "Retract your shoulder blades to create a stable base.",
            "Keep your feet planted firmly on the ground.",
        ],
    ),
    Exercise(
        id="barbell-squat",
        name="Barbell Squat",
        muscle_group="Legs",
        secondary_muscles=["Core", "Back"],
        equipment="Barbell",
        difficulty="Advanced",
        form_guide=[
            "Place bar on upper back (traps).",
            "Stand with feet shoulder-width apart, toes slightly out.",
            "Break at hips and knees simultaneously to lower.",
            "Keep chest up and back straight.",
            "Drive back up through heels.",
        ],
        common_mistakes=[
            "Knees caving inward.",
            "Rounding the lower back at the bottom.",
            "Heels lifting off the floor.",
        ],
        tips=[
            "Take a deep breath and brace your core before descending.",
            "Look straight ahead or slightly down, not up.",
        ],
    ),
    Exercise(
        id="deadlift",
        name="Deadlift",
        muscle_group="Back",
        secondary_muscles=["Legs", "Core"],
        equipment="Barbell",
        difficulty="Advanced",
        form_guide=[
            "Stand with mid-foot under the bar.",
            "Hinge and grip the bar just outside your legs.",
            "Flatten your back and pull the slack out of the bar.",
            "Push the floor away and lock out with hips and knees together.",
        ],
        common_mistakes=[
            "Rounding the back off the floor.",
            "Letting the bar drift away from the body.",
            "Hyperextending at lockout.",
        ],
        tips=["Keep the bar in contact with your legs the whole way up."],
    ),
    Exercise(
        id="pull-up",
        name="Pull Up",
        muscle_group="Back",
        secondary_muscles=["Arms"],
        equipment="Bodyweight",
        difficulty="Intermediate",
        form_guide=[
            "Grab the bar with an overhand grip, slightly wider than shoulders.",
            "Hang with arms fully extended.",
            "Pull yourself up until your chin is over the bar.",
            "Lower yourself back down with control.",
        ],
        common_mistakes=[
            "Kicking legs for momentum.",
            "Not going through full range of motion.",
        ],
        tips=["Initiate the movement by driving elbows down."],
    ),
    Exercise(
        id="overhead-press",
        name="Overhead Press",
        muscle_group="Shoulders",
        secondary_muscles=["Arms", "Core"],
        equipment="Barbell",
        difficulty="Intermediate",
        form_guide=[
            "Hold the bar at collarbone height, hands just outside shoulders.",
            "Brace glutes and core.",
            "Press straight up, moving your head back to clear the bar.",
            "Lock out with the bar over mid-foot.",
        ],
        common_mistakes=["Leaning back excessively.", "Pressing the bar forward instead of up."],
        tips=[],
    ),
]

_BY_ID = {exercise.id: exercise for exercise in EXERCISE_LIBRARY}


def get_exercise(exercise_id: str) -> Exercise | None:
    """Look up a catalog exercise by id."""
    return _BY_ID.get(exercise_id)
