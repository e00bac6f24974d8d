"""
journal families - publisher portfolios treated as closely related venues.
impact factors are approximate.
"""

from dataclasses import dataclass
from typing import List, Optional, Set, Iterable


@dataclass(frozen=True)
class JournalFamily:
    id: str
    display_name: str
    impact_factor: float
    members: tuple


JOURNAL_FAMILIES: List[JournalFamily] = [
    JournalFamily(
        id="nature",
        display_name="Nature",
        impact_factor=69,
        members=(
            "Nature", "Nature Medicine", "Nature Biotechnology", "Nature Genetics",
            "Nature Immunology", "Nature Neuroscience",
            "Nature Structural & Molecular Biology", "Nature Cell Biology",
            "Nature Methods", "Nature Chemical Biology", "Nature Protocols",
            "Nature Reviews Genetics", "Nature Reviews Immunology",
            "Nature Reviews Neuroscience", "Nature Reviews Molecular Cell Biology",
            "Nature Reviews Drug Discovery", "Nature Reviews Cancer",
            "Nature Communications", "Nature Metabolism", "Nature Microbiology",
            "Nature Plants", "Nature Ecology & Evolution", "Nature Climate Change",
            "Nature Energy", "Nature Nanotechnology", "Nature Photonics",
            "Nature Physics", "Nature Chemistry", "Nature Materials",
        ),
    ),
    JournalFamily(
        id="science",
        display_name="Science",
        impact_factor=56,
        members=(
            "Science", "Science Translational Medicine", "Science Signaling",
            "Science Immunology", "Science Advances", "Science Robotics",
        ),
    ),
    JournalFamily(
        id="cell",
        display_name="Cell",
        impact_factor=64,
        members=(
            "Cell", "Cell Stem Cell", "Cell Metabolism", "Molecular Cell",
            "Developmental Cell", "Cell Reports", "Cancer Cell", "Immunity",
            "Neuron", "Cell Host & Microbe", "Cell Chemical Biology",
            "Cell Systems", "Trends in Cell Biology", "Trends in Immunology",
            "Trends in Neurosciences", "Trends in Genetics",
            "Trends in Biotechnology", "Current Biology", "Structure",
            "Molecular Therapy", "Cell Reports Medicine", "Cell Reports Methods",
            "Cell Genomics",
        ),
    ),
    JournalFamily(
        id="nejm",
        display_name="New England Journal of Medicine",
        impact_factor=176,
        members=(
            "New England Journal of Medicine", "NEJM Evidence", "NEJM Catalyst",
            "NEJM Journal Watch",
        ),
    ),
    JournalFamily(
        id="lancet",
        display_name="The Lancet",
        impact_factor=168,
        members=(
            "The Lancet", "The Lancet Oncology", "The Lancet Neurology",
            "The Lancet Infectious Diseases", "The Lancet Respiratory Medicine",
            "The Lancet Diabetes & Endocrinology", "The Lancet Haematology",
            "The Lancet Gastroenterology & Hepatology", "The Lancet HIV",
            "The Lancet Psychiatry", "The Lancet Global Health",
            "The Lancet Public Health", "The Lancet Digital Health",
            "The Lancet Planetary Health", "The Lancet Rheumatology",
            "The Lancet Microbe",
        ),
    ),
    JournalFamily(
        id="jama",
        display_name="JAMA",
        impact_factor=157,
        members=(
            "JAMA", "JAMA Internal Medicine", "JAMA Oncology", "JAMA Cardiology",
            "JAMA Neurology", "JAMA Psychiatry", "JAMA Surgery", "JAMA Pediatrics",
            "JAMA Dermatology", "JAMA Ophthalmology",
            "JAMA Otolaryngology-Head & Neck Surgery", "JAMA Network Open",
            "JAMA Health Forum",
        ),
    ),
    JournalFamily(
        id="plos",
        display_name="PLOS",
        impact_factor=9,
        members=(
            "PLOS Biology", "PLOS Medicine", "PLOS ONE", "PLOS Genetics",
            "PLOS Computational Biology", "PLOS Pathogens",
            "PLOS Neglected Tropical Diseases",
        ),
    ),
    JournalFamily(
        id="bmc",
        display_name="BMC",
        impact_factor=8,
        members=(
            "BMC Biology", "BMC Medicine", "BMC Genomics", "BMC Bioinformatics",
            "BMC Cancer", "BMC Neuroscience", "BMC Immunology",
            "BMC Medical Genomics", "BMC Infectious Diseases", "BMC Public Health",
        ),
    ),
    JournalFamily(
        id="pnas",
        display_name="PNAS",
        impact_factor=12,
        members=(
            "Proceedings of the National Academy of Sciences", "PNAS",
            "Proceedings of the National Academy of Sciences of the United States of America",
        ),
    ),
    JournalFamily(
        id="other-high-impact",
        display_name="Other High-Impact Journals",
        impact_factor=15,
        members=(
            "eLife", "Genome Biology", "Genome Research", "Nucleic Acids Research",
            "Blood", "Circulation", "Gastroenterology", "Hepatology",
            "Journal of Clinical Investigation", "Journal of Experimental Medicine",
            "Annals of Internal Medicine", "BMJ", "Molecular Psychiatry", "Brain",
        ),
    ),
]


def find_journal_family(venue: Optional[str]) -> Optional[JournalFamily]:
    """
    family with a member equal to the venue, else the family whose member
    is the longest substring of it ("sciences" must not land in science).
    comparison is case-insensitive.
    """
    if not venue:
        return None

    venue_lower = venue.lower().strip()
    if not venue_lower:
        return None

    best = None
    best_length = 0
    for family in JOURNAL_FAMILIES:
        for member in family.members:
            member_lower = member.lower()
            if venue_lower == member_lower:
                return family
            if member_lower in venue_lower and len(member_lower) > best_length:
                best = family
                best_length = len(member_lower)

    return best


def journal_families_for(venues: Iterable[Optional[str]]) -> Set[str]:
    """ids of every family represented among venues."""
    family_ids = set()
    for venue in venues:
        family = find_journal_family(venue)
        if family:
            family_ids.add(family.id)
    return family_ids
