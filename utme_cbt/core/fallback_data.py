# utme_cbt/core/fallback_data.py
import logging
import time
import uuid
from typing import List, Dict, Any, Optional

from .config import config
from .models import Question, SOURCE_FALLBACK, canonical_subject

logger = logging.getLogger(__name__)

# Hand-authored UTME-style questions served when the provider cannot supply enough
FALLBACK_QUESTION_BANK: Dict[str, List[Dict[str, Any]]] = {
    "english": [
        {
            "question": "Choose the option that best completes the gap. The students were advised to _____ the instructions carefully before attempting the questions.",
            "options": {"a": "reed", "b": "read", "c": "red", "d": "ride"},
            "answer": "b",
            "explanation": "The correct spelling of the verb is \"read\"."
        },
        {
            "question": "Choose the word that has the same consonant sound as the one represented by the underlined letters. PHYSICS",
            "options": {"a": "phone", "b": "rough", "c": "laugh", "d": "cough"},
            "answer": "a",
            "explanation": "The \"ph\" in physics has the same /f/ sound as the \"ph\" in phone."
        },
        {
            "question": "Choose the option opposite in meaning to the underlined word. John was very FRUGAL with his money.",
            "options": {"a": "economical", "b": "wasteful", "c": "careful", "d": "generous"},
            "answer": "b",
            "explanation": "Frugal means economical or thrifty, so wasteful is the opposite."
        },
        {
            "question": "Choose the option that best completes the gap. Neither of the two boys _____ present at the meeting.",
            "options": {"a": "were", "b": "are", "c": "was", "d": "have been"},
            "answer": "c",
            "explanation": "\"Neither\" is singular and takes the singular verb \"was\"."
        },
        {
            "question": "What is the plural form of 'child'?",
            "options": {"a": "childs", "b": "children", "c": "childes", "d": "child's"},
            "answer": "b",
            "explanation": "\"Children\" is the irregular plural of \"child\"."
        }
    ],
    "mathematics": [
        {
            "question": "If log₁₀2 = 0.3010 and log₁₀3 = 0.4771, find log₁₀6.",
            "options": {"a": "0.7781", "b": "0.1761", "c": "0.8791", "d": "0.6532"},
            "answer": "a",
            "explanation": "log₁₀6 = log₁₀2 + log₁₀3 = 0.3010 + 0.4771 = 0.7781."
        },
        {
            "question": "Find the simple interest on ₦5000 for 3 years at 8% per annum.",
            "options": {"a": "₦1000", "b": "₦1200", "c": "₦800", "d": "₦1500"},
            "answer": "b",
            "explanation": "S.I. = PRT/100 = (5000 × 8 × 3)/100 = ₦1200."
        },
        {
            "question": "Solve for x: 2x + 5 = 13",
            "options": {"a": "3", "b": "4", "c": "5", "d": "6"},
            "answer": "b",
            "explanation": "2x = 13 - 5 = 8, so x = 4."
        },
        {
            "question": "What is the area of a circle with radius 7cm? (Take π = 22/7)",
            "options": {"a": "154 cm²", "b": "44 cm²", "c": "88 cm²", "d": "22 cm²"},
            "answer": "a",
            "explanation": "Area = πr² = (22/7) × 49 = 154 cm²."
        },
        {
            "question": "What is 15% of 200?",
            "options": {"a": "25", "b": "30", "c": "35", "d": "40"},
            "answer": "b",
            "explanation": "(15/100) × 200 = 30."
        }
    ],
    "biology": [
        {
            "question": "Which of the following is NOT a function of the liver?",
            "options": {"a": "Production of bile", "b": "Detoxification", "c": "Production of insulin", "d": "Storage of glycogen"},
            "answer": "c",
            "explanation": "Insulin is produced by the pancreas, not the liver."
        },
        {
            "question": "The basic unit of life is the",
            "options": {"a": "tissue", "b": "cell", "c": "organ", "d": "organism"},
            "answer": "b",
            "explanation": "The cell is the smallest structural and functional unit of life."
        },
        {
            "question": "Photosynthesis takes place mainly in the",
            "options": {"a": "roots", "b": "stem", "c": "leaves", "d": "flowers"},
            "answer": "c",
            "explanation": "Leaves contain the chloroplasts needed for photosynthesis."
        },
        {
            "question": "Which blood group is known as the universal donor?",
            "options": {"a": "A", "b": "B", "c": "AB", "d": "O"},
            "answer": "d",
            "explanation": "Group O red cells carry neither A nor B antigens."
        },
        {
            "question": "The powerhouse of the cell is the",
            "options": {"a": "nucleus", "b": "ribosome", "c": "mitochondrion", "d": "chloroplast"},
            "answer": "c",
            "explanation": "Mitochondria release energy as ATP during respiration."
        }
    ],
    "physics": [
        {
            "question": "The SI unit of electric current is the",
            "options": {"a": "volt", "b": "ampere", "c": "ohm", "d": "watt"},
            "answer": "b",
            "explanation": "The ampere is the SI base unit of electric current."
        },
        {
            "question": "A body at rest will remain at rest unless acted upon by an external force. This is",
            "options": {"a": "Newton's first law", "b": "Newton's second law", "c": "Newton's third law", "d": "the law of conservation of energy"},
            "answer": "a",
            "explanation": "This is Newton's first law of motion, the law of inertia."
        },
        {
            "question": "The speed of light in vacuum is approximately",
            "options": {"a": "3 × 10⁶ m/s", "b": "3 × 10⁷ m/s", "c": "3 × 10⁸ m/s", "d": "3 × 10⁹ m/s"},
            "answer": "c",
            "explanation": "Light travels at about 3 × 10⁸ metres per second in vacuum."
        },
        {
            "question": "Which of the following is a scalar quantity?",
            "options": {"a": "velocity", "b": "acceleration", "c": "force", "d": "speed"},
            "answer": "d",
            "explanation": "Speed has magnitude only, so it is a scalar."
        }
    ],
    "chemistry": [
        {
            "question": "What is the atomic number of carbon?",
            "options": {"a": "4", "b": "6", "c": "8", "d": "12"},
            "answer": "b",
            "explanation": "Carbon has 6 protons, so its atomic number is 6."
        },
        {
            "question": "Which gas is produced when dilute acids react with metals such as zinc?",
            "options": {"a": "oxygen", "b": "carbon dioxide", "c": "hydrogen", "d": "nitrogen"},
            "answer": "c",
            "explanation": "Acid + metal → salt + hydrogen."
        },
        {
            "question": "The pH of pure water at 25°C is",
            "options": {"a": "0", "b": "7", "c": "14", "d": "1"},
            "answer": "b",
            "explanation": "Pure water is neutral with a pH of 7 at 25°C."
        },
        {
            "question": "Which element has the chemical symbol Na?",
            "options": {"a": "Nickel", "b": "Nitrogen", "c": "Sodium", "d": "Neon"},
            "answer": "c",
            "explanation": "Na comes from the Latin name natrium, sodium."
        }
    ],
    "government": [
        {
            "question": "The 1999 Constitution of the Federal Republic of Nigeria has how many chapters?",
            "options": {"a": "6", "b": "7", "c": "8", "d": "9"},
            "answer": "c",
            "explanation": "The 1999 Constitution is arranged in 8 chapters."
        },
        {
            "question": "Which arm of government is responsible for law-making?",
            "options": {"a": "Executive", "b": "Legislature", "c": "Judiciary", "d": "Civil Service"},
            "answer": "b",
            "explanation": "The legislature (the National Assembly) makes laws."
        },
        {
            "question": "Nigeria operates which system of government?",
            "options": {"a": "Unitary", "b": "Confederal", "c": "Federal", "d": "Parliamentary"},
            "answer": "c",
            "explanation": "Nigeria is a federation with three tiers of government."
        },
        {
            "question": "The principle of separation of powers is associated with",
            "options": {"a": "John Locke", "b": "Montesquieu", "c": "Thomas Hobbes", "d": "Jean-Jacques Rousseau"},
            "answer": "b",
            "explanation": "Baron de Montesquieu advocated the separation of powers."
        }
    ],
    "economics": [
        {
            "question": "The basic economic problem is",
            "options": {"a": "unemployment", "b": "inflation", "c": "scarcity", "d": "poverty"},
            "answer": "c",
            "explanation": "Resources are scarce relative to unlimited human wants."
        },
        {
            "question": "Which of the following is NOT a factor of production?",
            "options": {"a": "land", "b": "labour", "c": "money", "d": "capital"},
            "answer": "c",
            "explanation": "The factors are land, labour, capital and entrepreneurship."
        },
        {
            "question": "The Central Bank of Nigeria was established in",
            "options": {"a": "1958", "b": "1959", "c": "1960", "d": "1961"},
            "answer": "a",
            "explanation": "The CBN Act was passed in 1958."
        },
        {
            "question": "When supply increases while demand remains constant, price will",
            "options": {"a": "increase", "b": "decrease", "c": "remain constant", "d": "fluctuate"},
            "answer": "b",
            "explanation": "A rightward shift in supply with unchanged demand lowers the equilibrium price."
        }
    ],
    "literature": [
        {
            "question": "A story in which characters and events stand for abstract ideas is called",
            "options": {"a": "an allegory", "b": "a satire", "c": "an elegy", "d": "a farce"},
            "answer": "a",
            "explanation": "In an allegory characters and events represent ideas beyond the literal story."
        },
        {
            "question": "Who wrote 'Things Fall Apart'?",
            "options": {"a": "Wole Soyinka", "b": "Chinua Achebe", "c": "Ngugi wa Thiong'o", "d": "Cyprian Ekwensi"},
            "answer": "b",
            "explanation": "Chinua Achebe published Things Fall Apart in 1958."
        },
        {
            "question": "A fourteen-line poem written in iambic pentameter is a",
            "options": {"a": "ballad", "b": "ode", "c": "sonnet", "d": "limerick"},
            "answer": "c",
            "explanation": "The sonnet has fourteen lines, usually in iambic pentameter."
        }
    ],
    "geography": [
        {
            "question": "The imaginary line that divides the earth into the northern and southern hemispheres is the",
            "options": {"a": "Greenwich Meridian", "b": "Tropic of Cancer", "c": "Equator", "d": "International Date Line"},
            "answer": "c",
            "explanation": "The Equator (0° latitude) separates the two hemispheres."
        },
        {
            "question": "The longest river in Nigeria is the",
            "options": {"a": "River Benue", "b": "River Niger", "c": "River Kaduna", "d": "River Ogun"},
            "answer": "b",
            "explanation": "The Niger is the longest river flowing through Nigeria."
        },
        {
            "question": "Which instrument is used to measure atmospheric pressure?",
            "options": {"a": "thermometer", "b": "hygrometer", "c": "barometer", "d": "anemometer"},
            "answer": "c",
            "explanation": "A barometer measures atmospheric pressure."
        }
    ],
    "commerce": [
        {
            "question": "The document sent by a seller to a buyer stating the amount due for goods supplied is the",
            "options": {"a": "invoice", "b": "receipt", "c": "quotation", "d": "order"},
            "answer": "a",
            "explanation": "An invoice states the goods supplied and the amount payable."
        },
        {
            "question": "Which of the following is an aid to trade?",
            "options": {"a": "manufacturing", "b": "banking", "c": "mining", "d": "farming"},
            "answer": "b",
            "explanation": "Banking, insurance, transport and advertising are aids to trade."
        },
        {
            "question": "A business owned and controlled by one person is a",
            "options": {"a": "partnership", "b": "cooperative", "c": "sole proprietorship", "d": "limited company"},
            "answer": "c",
            "explanation": "A sole proprietor owns, finances and controls the business alone."
        }
    ]
}

# Clearly-placeholder content for subjects without a bank
GENERIC_TEMPLATES: List[Dict[str, Any]] = [
    {
        "question": "Practice question: which of the following is a key concept in {subject}?",
        "options": {"a": "Concept A", "b": "Concept B", "c": "Concept C", "d": "Concept D"},
        "answer": "a",
        "explanation": "This is a placeholder practice question for {subject}. Real past questions will appear when the question bank is reachable."
    },
    {
        "question": "Practice question: which statement about {subject} is correct?",
        "options": {"a": "Statement A", "b": "Statement B", "c": "Statement C", "d": "Statement D"},
        "answer": "a",
        "explanation": "This is a placeholder practice question for {subject}. Consult your textbooks for detailed explanations."
    }
]

class FallbackGenerator:
    """Synthesizes placeholder questions from the static bank; never fails"""

    def __init__(self, bank: Dict[str, List[Dict[str, Any]]] = None, exam_year: str = None):
        self.bank = bank if bank is not None else FALLBACK_QUESTION_BANK
        self.exam_year = exam_year or config.FALLBACK_EXAM_YEAR

    def templates_for(self, subject: str) -> List[Dict[str, Any]]:
        templates = self.bank.get(canonical_subject(subject))
        if templates:
            return templates

        label = subject or "this subject"
        return [
            {
                "question": template["question"].format(subject=label),
                "options": dict(template["options"]),
                "answer": template["answer"],
                "explanation": template["explanation"].format(subject=label)
            }
            for template in GENERIC_TEMPLATES
        ]

    def generate(self, subject: str, count: int, exam_type: str = "utme",
                 year: Optional[str] = None) -> List[Question]:
        """Generate exactly `count` questions, cycling the subject's templates"""
        if count <= 0:
            return []

        templates = self.templates_for(subject)
        stamp = int(time.time() * 1000)
        batch = uuid.uuid4().hex[:8]
        slug = (subject or "general").strip().lower().replace(" ", "_")

        questions = []
        for i in range(count):
            template = templates[i % len(templates)]
            questions.append(Question(
                id=f"fallback_{slug}_{i}_{stamp}_{batch}",
                question=template["question"],
                options=dict(template["options"]),
                answer=template["answer"],
                explanation=template.get("explanation", ""),
                subject=subject,
                exam_type=exam_type,
                exam_year=year or self.exam_year,
                source=SOURCE_FALLBACK
            ))

        logger.warning(f"⚠️ Generated {count} fallback {subject} questions for {exam_type}")
        return questions
