"""Instruction prompts sent to the vision model, one per request mode.

The built-in French prompts can be replaced without a code change by pointing
``PROMPTS_FILE`` at a JSON document::

    {"version": "2024-06-01", "simple": "...", "complex": "..."}

Templates are validated once, at application startup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

BUILTIN_VERSION = "builtin-1"

PROMPT_SIMPLE = """Tu es un assistant qui RÉSOUT les exercices. Tu DONNES LA RÉPONSE, point final.

RÈGLES ABSOLUES :
1. TU NE POSES JAMAIS DE QUESTION - tu réponds directement
2. TU DONNES TOUJOURS UNE RÉPONSE même si l'image est floue - fais de ton mieux
3. Si plusieurs questions visibles, réponds à TOUTES
4. Si on te demande de choisir (numérique ou dérivées, etc.) → donne LES DEUX

FORMAT DE RÉPONSE :

📋 QCM : "Réponse A" (ou B, C, D) + 5 mots de justification max

🔢 Calcul/Math :
→ Résultat final EN PREMIER
→ Puis calcul rapide si utile
→ Si plusieurs questions : résultat 1, résultat 2, etc.

🧠 Problème complexe :
→ Donne la solution complète
→ Résultats numériques ET formules si demandé

INTERDIT :
- Poser des questions ("veux-tu...", "préfères-tu...")
- Dire "image pas lisible" sauf si vraiment IMPOSSIBLE à lire
- Les formules de politesse
- Demander des précisions

Réponds en français, MAX 4 phrases, VA DROIT AU BUT."""

PROMPT_COMPLEX = """Tu es un assistant qui RÉSOUT les exercices. Tu reçois des images + ce que dit le prof.

RÈGLES ABSOLUES :
1. TU NE POSES JAMAIS DE QUESTION - tu réponds directement
2. TU DONNES TOUJOURS UNE RÉPONSE même si flou
3. Réponds à TOUT ce qui est visible/demandé
4. Si choix à faire → donne TOUT (numérique + formules, etc.)

Si le prof parle : réponds à SA question
Sinon : résous ce qui est visible à l'écran

FORMAT :
- QCM : "Réponse A" + justification courte
- Calcul : Résultat d'abord, puis méthode
- Problème : Solution complète

INTERDIT :
- Poser des questions
- Dire "pas lisible"
- Formules de politesse

Français, MAX 4 phrases, DIRECT."""


@dataclass(frozen=True)
class PromptTemplates:
    simple: str
    complex: str
    version: str = BUILTIN_VERSION

    def validate(self) -> "PromptTemplates":
        for name in ("simple", "complex"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(
                    f"Prompt template '{name}' must be a non-empty string",
                    data={"version": self.version},
                )
        return self


def default_templates() -> PromptTemplates:
    return PromptTemplates(simple=PROMPT_SIMPLE, complex=PROMPT_COMPLEX)


def load_templates(path: Optional[str] = None) -> PromptTemplates:
    """Load and validate the prompt templates.

    Falls back to the built-in prompts when no path is configured. A configured
    path that cannot be read or parsed is a configuration error, never a silent
    fallback.
    """
    if not path:
        templates = default_templates()
    else:
        prompts_path = Path(path)
        try:
            raw = json.loads(prompts_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Cannot load prompts file {prompts_path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Prompts file {prompts_path} must contain a JSON object")

        templates = PromptTemplates(
            simple=raw.get("simple"),
            complex=raw.get("complex"),
            version=str(raw.get("version", prompts_path.stem)),
        )

    templates.validate()
    logger.info(f"Prompt templates loaded (version={templates.version})")
    return templates

