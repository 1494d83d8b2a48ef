"""In-process knowledge store.

Keyword inverted index with IDF-weighted scoring. Works fully offline and is
seeded with general strength-training knowledge plus one guide per catalog
exercise.
"""

import logging
import math
from collections import defaultdict
from typing import Any

from coach_ai.catalog import EXERCISE_LIBRARY
from coach_ai.entities import KnowledgeDocument, KnowledgeSnippet
from coach_ai.models import Exercise
from coach_ai.utils import tokenize

logger = logging.getLogger(__name__)

FITNESS_KNOWLEDGE: list[KnowledgeDocument] = [
    KnowledgeDocument(
        id="knowledge_progressive_overload",
        category="fitness_knowledge",
        title="Progressive overload principles",
        content=(
            "Progressive overload is the gradual increase of stress placed on the body during training. "
            "Methods include increasing weight, adding reps, adding sets and reducing rest time. "
            "Beginners can aim for 5-10% weight increases when all target reps are completed. "
            "Intermediates progress with 2.5-5% increases or microloading. "
            "Advanced lifters periodize with planned deloads every 4-6 weeks. "
            "Completing all sets with 2 or more reps in reserve means the weight can go up; "
            "failing before target reps or form breakdown means it should come down."
        ),
        metadata={"topic": "progression"},
    ),
    KnowledgeDocument(
        id="knowledge_recovery",
        category="fitness_knowledge",
        title="Recovery guidelines",
        content=(
            "Sleep 7-9 hours for optimal recovery; sleep deprivation can reduce strength by 7-11%. "
            "Rest 3-5 minutes between strength sets, 1-2 minutes for hypertrophy. "
            "The same muscle group needs 48-72 hours between sessions. "
            "Deload every 4-8 weeks by reducing volume or intensity by 40-50%. "
            "Persistent fatigue, strength regression, poor sleep and irritability are signs of overtraining."
        ),
        metadata={"topic": "recovery"},
    ),
    KnowledgeDocument(
        id="knowledge_rpe",
        category="fitness_knowledge",
        title="RPE guide",
        content=(
            "RPE (rate of perceived exertion) 10 is maximum effort with no reps left. "
            "RPE 9 leaves one rep, RPE 8 two to three reps, RPE 7 four to six reps. "
            "Strength work sits at RPE 8-9, hypertrophy at RPE 7-8. "
            "Use RPE to autoregulate: adjust weight based on daily readiness."
        ),
        metadata={"topic": "intensity"},
    ),
    KnowledgeDocument(
        id="knowledge_volume",
        category="fitness_knowledge",
        title="Training volume guidelines",
        content=(
            "Minimum effective volume is 6-8 sets per muscle group per week. "
            "Maximum adaptive volume is 12-20 weekly sets; maximum recoverable volume 20-25 sets. "
            "Beginners start near the minimum and progress slowly. "
            "Large muscles such as back and legs tolerate more volume."
        ),
        metadata={"topic": "volume"},
    ),
    KnowledgeDocument(
        id="knowledge_balance",
        category="fitness_knowledge",
        title="Muscle group balance",
        content=(
            "Aim for a push to pull ratio between 1:1 and 1:1.5. "
            "Balance the anterior and posterior chain. "
            "Too much pressing and not enough rowing is the most common imbalance. "
            "Balance quads and hamstrings in the lower body."
        ),
        metadata={"topic": "balance"},
    ),
    KnowledgeDocument(
        id="knowledge_nutrition",
        category="fitness_knowledge",
        title="Nutrition for strength training",
        content=(
            "Eat 1.6-2.2g protein per kg bodyweight for muscle building, spread across 4-5 meals. "
            "Have carbs and protein 1-2 hours before training. "
            "Drink 2-3 liters of water daily. Creatine at 3-5g daily is the most researched supplement."
        ),
        metadata={"topic": "nutrition"},
    ),
]


def exercise_guide_document(exercise: Exercise) -> KnowledgeDocument:
    """Build the searchable guide document for an exercise."""
    lines = [
        f"Exercise: {exercise.name}",
        f"Primary muscle: {exercise.muscle_group}",
    ]
    if exercise.secondary_muscles:
        lines.append(f"Secondary muscles: {', '.join(exercise.secondary_muscles)}")
    lines.append(f"Equipment: {exercise.equipment}")
    lines.append(f"Difficulty: {exercise.difficulty}")
    lines.extend(f"{i}. {step}" for i, step in enumerate(exercise.form_guide, start=1))
    lines.extend(f"Mistake: {m}" for m in exercise.common_mistakes)
    lines.extend(f"Tip: {t}" for t in exercise.tips)
    return KnowledgeDocument(
        id=f"exercise_guide_{exercise.id}",
        category="exercise_guide",
        title=f"{exercise.name} guide",
        content="\n".join(lines),
        metadata={"exercise_id": exercise.id, "muscle_group": exercise.muscle_group},
    )


class InMemoryKnowledgeStore:
    """Inverted-index knowledge store.

    This class satisfies the KnowledgeSource protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, documents: list[KnowledgeDocument] | None = None) -> None:
        self._documents: dict[str, KnowledgeDocument] = {}
        self._index: dict[str, set[str]] = defaultdict(set)
        self._initialized = False
        for doc in documents or []:
            self.add_document(doc)

    @classmethod
    def create(cls) -> "InMemoryKnowledgeStore":
        """Create a store seeded with the built-in knowledge and exercise guides."""
        store = cls()
        store.initialize()
        return store

    def initialize(self) -> None:
        """Seed the built-in documents. Safe to call more than once."""
        if self._initialized:
            return
        for doc in FITNESS_KNOWLEDGE:
            self.add_document(doc)
        for exercise in EXERCISE_LIBRARY:
            self.add_document(exercise_guide_document(exercise))
        self._initialized = True
        logger.info("Knowledge store initialized with %d documents", len(self._documents))

    def add_document(self, doc: KnowledgeDocument) -> None:
        """Add or replace a document and index its terms."""
        if doc.id in self._documents:
            for doc_ids in self._index.values():
                doc_ids.discard(doc.id)
        self._documents[doc.id] = doc
        for term in set(tokenize(f"{doc.title} {doc.content}")):
            self._index[term].add(doc.id)

    def get_document(self, doc_id: str) -> KnowledgeDocument | None:
        return self._documents.get(doc_id)

    def __len__(self) -> int:
        return len(self._documents)

    def search_sync(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        top_k: int = 3,
    ) -> list[KnowledgeSnippet]:
        """Score documents against a query.

        Each query term adds ``log(N / df)`` to every document containing it;
        the total is normalized by the number of query terms.
        """
        terms = tokenize(query)
        if not terms or not self._documents:
            return []

        total = len(self._documents)
        scores: dict[str, float] = defaultdict(float)
        for term in terms:
            doc_ids = self._index.get(term)
            if not doc_ids:
                continue
            idf = math.log(total / len(doc_ids))
            for doc_id in doc_ids:
                scores[doc_id] += idf

        results = []
        for doc_id, score in scores.items():
            doc = self._documents[doc_id]
            if filters and not self._matches(doc, filters):
                continue
            results.append(
                KnowledgeSnippet(
                    document_id=doc.id,
                    title=doc.title,
                    content=doc.content,
                    score=score / len(terms),
                )
            )
        results.sort(key=lambda s: s.score, reverse=True)
        return results[:top_k]

    async def search(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        top_k: int = 3,
    ) -> list[KnowledgeSnippet]:
        return self.search_sync(query, filters=filters, top_k=top_k)

    @staticmethod
    def _matches(doc: KnowledgeDocument, filters: dict[str, Any]) -> bool:
        for field_name, expected in filters.items():
            if field_name == "category":
                actual = doc.category
            else:
                actual = doc.metadata.get(field_name)
            if actual != expected:
                return False
        return True
