"""Sample family used by ``archive seed`` and the test suite.

Two parents and two children, linked by spouse, child and sibling edges
(reciprocals are written by the store), plus one birth event per person.
"""

import logging
from datetime import date

from family_archive.storage import ArchiveDatabase, Person, PersonRepository, RelationshipStore

logger = logging.getLogger(__name__)

SAMPLE_FAMILY: dict[str, dict] = {
    "father": {
        "full_name": "أحمد محمد العلي",
        "gender": "male",
        "birth_date": date(1985, 3, 15),
        "biography": "مهندس برمجيات ومؤرخ العائلة. يعمل في مجال التقنية منذ أكثر من 15 عامًا.",
    },
    "mother": {
        "full_name": "فاطمة أحمد العلي",
        "gender": "female",
        "birth_date": date(1987, 7, 22),
        "biography": "طبيبة أطفال في مستشفى الملك فيصل. متخصصة في طب الأطفال حديثي الولادة.",
    },
    "son": {
        "full_name": "عبدالله أحمد العلي",
        "gender": "male",
        "birth_date": date(2015, 12, 10),
        "biography": "طالب في المرحلة الابتدائية. يحب الرسم والقراءة.",
    },
    "daughter": {
        "full_name": "Sara Ahmed Al-Ali",
        "gender": "female",
        "birth_date": date(2018, 5, 18),
        "biography": "Pre-school student who loves playing with toys and learning colors.",
    },
}

# (person, relative, type): "relative is person's <type>"
SAMPLE_EDGES = [
    ("father", "mother", "spouse"),
    ("father", "son", "child"),
    ("father", "daughter", "child"),
    ("mother", "son", "child"),
    ("mother", "daughter", "child"),
    ("son", "daughter", "sibling"),
]


def seed_sample_family(db: ArchiveDatabase) -> dict[str, Person]:
    """Create the sample family.

    Args:
        db: Initialized storage handle

    Returns:
        Mapping of role (father, mother, son, daughter) to the created Person
    """
    persons = PersonRepository(db)
    store = RelationshipStore(db)

    created: dict[str, Person] = {}
    for role, fields in SAMPLE_FAMILY.items():
        person = persons.create(**fields)
        persons.add_event(
            person.id,
            "birth",
            event_date=fields["birth_date"],
            description=f"Birth of {person.full_name}",
        )
        created[role] = person

    for person_role, relative_role, relation_type in SAMPLE_EDGES:
        store.add_relationship(created[person_role].id, created[relative_role].id, relation_type)

    logger.info("Seeded sample family with %d persons", len(created))
    return created
