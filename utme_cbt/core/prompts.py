# utme_cbt/core/prompts.py
from typing import Dict, Optional


class PromptTemplates:
    """Centralized prompt template management"""

    SYSTEM_PROMPT = (
        "You are UTME AI, an expert Nigerian education assistant. "
        "Provide clear, accurate explanations for examination questions."
    )

    @staticmethod
    def create_explanation_prompt(question: str, correct_answer: str,
                                  user_answer: Optional[str] = None,
                                  options: Optional[Dict[str, str]] = None) -> str:
        """Create prompt for explaining a single exam question"""
        options_block = ""
        if options:
            options_block = "\nOptions:\n" + "\n".join(
                f"{label.upper()}. {text}" for label, text in sorted(options.items())
            )

        answered = user_answer or "No answer given"

        return f"""Explain this examination question for a student preparing for JAMB/UTME.

Question: {question}{options_block}
Student's answer: {answered}
Correct answer: {correct_answer}

Provide a detailed explanation (250-400 words) that includes:

1. DETAILED ANALYSIS: why "{correct_answer}" is correct, with specific reasoning
2. MISTAKE ANALYSIS: if the student chose "{answered}" instead, what misconception led there
3. CONCEPTUAL FOUNDATION: the principles or theories this question tests
4. REAL-WORLD APPLICATION: an example relevant to Nigerian students
5. EXAM STRATEGY: how to recognise and solve similar JAMB/POST-UTME questions
6. MEMORY AIDS: a mnemonic, formula or key point to remember

Use clear, accessible language while keeping academic depth."""

    @staticmethod
    def template_explanation(question: str, correct_answer: str,
                             user_answer: Optional[str] = None) -> str:
        """Explanation used when no language model is available"""
        lines = [f"The correct answer is {correct_answer}."]

        if user_answer and user_answer.strip().lower() != correct_answer.strip().lower():
            lines.append(f"You chose {user_answer}, which does not answer the question as asked.")
        elif user_answer:
            lines.append("Well done, your answer is correct.")

        lines.append(
            "Review the topic this question covers in your textbook and practise "
            "similar past questions to reinforce the concept."
        )
        return " ".join(lines)
