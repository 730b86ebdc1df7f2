"""
prompts.py — Classifier Instructions
-------------------------------------

Two mutually exclusive system prompts, chosen only by whether the species
directory has entries:

* constrained: enumerates every catalog label and forbids anything else,
  with "unknown" + confidence 0 as the escape hatch
* fallback: open vocabulary, used in degraded mode

Prompts are in French to match the catalog and the mobile app.
"""

from typing import Optional, Sequence

UNKNOWN_SENTINEL = "unknown"

JSON_FORMAT = (
    '{"primary":{"species":"Nom exact de la liste","confidence":98},'
    '"alternatives":[{"species":"Deuxieme option","confidence":55},'
    '{"species":"Troisieme option","confidence":38}]}'
)

FALLBACK_PROMPT = (
    "Tu es expert pour trouver l'espece de poisson. Analyse la photo fournie et reponds "
    "uniquement avec du JSON ayant la forme suivante : "
    + JSON_FORMAT
    + " . La confiance est toujours un pourcentage entier entre 0 et 100."
)

USER_INSTRUCTION = (
    "Analyse l'image jointe et renvoie exactement le JSON demande (species + confidence). "
    "Les pourcentages doivent etre des entiers."
)


def build_constrained_prompt(species_names: Sequence[str]) -> str:
    listing = "\n".join(f"{i}. {name}" for i, name in enumerate(species_names, start=1))
    return (
        "Tu es expert en identification de poissons.\n"
        f"Voici la liste EXHAUSTIVE des especes disponibles :\n{listing}\n\n"
        "REGLES :\n"
        "- Tu DOIS choisir UNIQUEMENT parmi les especes de cette liste.\n"
        "- Utilise le nom EXACT tel qu'il apparait dans la liste (orthographe, accents, parentheses).\n"
        "- Si le poisson ressemble a plusieurs especes de la liste, classe-les par confiance.\n"
        "- Si le poisson ne correspond a AUCUNE espece de la liste meme de loin, "
        f'retourne "{UNKNOWN_SENTINEL}" comme nom d\'espece avec une confiance de 0.\n'
        "- La confiance est toujours un pourcentage entier entre 0 et 100.\n\n"
        f"Reponds uniquement avec du JSON : {JSON_FORMAT}"
    )


def build_prompt(species_names: Optional[Sequence[str]]) -> str:
    if species_names:
        return build_constrained_prompt(species_names)
    return FALLBACK_PROMPT
