"""
Interview prompt templates and generation.

This module contains all the prompt templates used throughout the interview system,
keeping them separate from the business logic for easier maintenance and editing.
"""

from typing import Dict, List
import json

from .models import InterviewParameters, Tier, TestQuestion, UserAnswer
from ..config import (
    TERMINATION_PHRASE, FEEDBACK_MARKER, INTERVIEWER_NAME,
    MIN_INTERVIEW_QUESTIONS, MAX_INTERVIEW_QUESTIONS,
    TEST_QUESTION_COUNT, TEST_OPTION_COUNT, PASSING_SCORE,
)


LANGUAGES: Dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "hi": "Hindi",
    "ar": "Arabic",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
}

DIFFICULTY_DIRECTIVES: Dict[Tier, str] = {
    Tier.BEGINNER: (
        "Keep the questions foundational and straightforward. Focus on getting to know the "
        "candidate's background and basic qualifications. Ask about their resume and their "
        "motivation for the role."
    ),
    Tier.INTERMEDIATE: (
        "The questions should be more challenging, requiring the candidate to provide specific "
        "examples and demonstrate deeper problem-solving skills (e.g., using the STAR method). "
        "Introduce one or two behavioral questions."
    ),
    Tier.ADVANCED: (
        "The interview should be tough, simulating a final-round or C-level interview. Ask "
        "complex, multi-part questions, challenge the candidate's assumptions, and probe deeply "
        "into their strategic thinking. Include situational and case-study style questions."
    ),
}


def language_name(language_code: str) -> str:
    """English name for a language code; unknown codes fall back to English."""
    base = (language_code or "").split("-")[0].lower()
    return LANGUAGES.get(base, "English")


class InterviewPrompts:
    """Collection of all interview-related prompts."""

    @staticmethod
    def system_instruction(params: InterviewParameters, language_code: str, tier: Tier) -> str:
        """System instruction that frames the interviewer persona for a session."""
        return f"""
You are an expert hiring manager at {params.company_name}. Your name is {INTERVIEWER_NAME}. You are conducting a job interview for the {params.job_role} position. Your goal is to assess the candidate's skills, experience, and cultural fit for {params.company_name}.

Your entire conversation, including all questions and responses, MUST be in {language_name(language_code)}.

The candidate's current skill level is {tier.display_name}. You must tailor the interview difficulty accordingly. {DIFFICULTY_DIRECTIVES[tier]}

Use the company's official website ({params.company_url}) as context to understand its mission, values, products, and recent news. Do not invent facts about the company that you cannot support. Your tone and questions should reflect the company's culture.

Begin the interview by introducing yourself and your role, then ask a strong, relevant opening question. Wait for the candidate's response before asking a logical follow-up. Maintain the context of the conversation. Do not break character. Do not mention that you are an AI. When the candidate skips a question, acknowledge it briefly and move to the next logical question.

The interview will consist of {MIN_INTERVIEW_QUESTIONS}-{MAX_INTERVIEW_QUESTIONS} questions. The candidate will signal the end of the interview by typing '{TERMINATION_PHRASE}'.
        """.strip()

    @staticmethod
    def feedback_request() -> str:
        """Sent once the candidate ends the interview."""
        m = FEEDBACK_MARKER
        return f"""
The candidate has concluded the interview by stating "{TERMINATION_PHRASE}". Based on our entire conversation history, please generate a comprehensive, narrative-style feedback report. Do not ask any more questions or continue the interview.

The report must be in the same language as the interview and have the following sections, clearly titled with "{m}":

{m} Overall Assessment
Provide a summary of the candidate's performance, suitability for the role, and cultural fit with the company.

{m} Key Strengths
List 2-3 specific strengths, providing direct examples or paraphrasing from the candidate's answers to support your points.

{m} Areas for Improvement
List 2-3 specific areas where the candidate could improve, again using concrete examples from the interview. Suggest actionable advice.

Your tone should be professional, constructive, and encouraging. Address the candidate directly in the second person (e.g., "Your response to...").
        """.strip()

    @staticmethod
    def test_generation(tier: Tier) -> str:
        """Prompt for the promotion test questions."""
        return f"""
Based on a {tier.display_name}-level job interview for a generic corporate role (e.g., business, tech, marketing), generate a {TEST_QUESTION_COUNT}-question multiple-choice test to assess the candidate's core professional knowledge and situational judgment. The questions should be relevant to common workplace scenarios.

Each question must have a unique id (e.g., "q1") and exactly {TEST_OPTION_COUNT} distinct options. Do not include the correct answer in your response.
        """.strip()

    @staticmethod
    def grading(questions: List[TestQuestion], answers: List[UserAnswer]) -> str:
        """Prompt for grading a submitted promotion test."""
        return f"""
A candidate has taken a test. Here are the questions, their options and the candidate's answers. Please grade the test. The goal is to assess general professional aptitude. A passing score is {PASSING_SCORE}%.

Questions: {json.dumps([q.to_dict() for q in questions], ensure_ascii=False)}
Candidate's Answers: {json.dumps([a.to_dict() for a in answers], ensure_ascii=False)}

Return a numeric score from 0 to 100, whether the candidate passed, and concise, constructive overall feedback addressed to the candidate ("You did well on..."). For every question, also return the question id, the candidate's answer exactly as given, whether it was correct, a short explanation, and the correct answer copied exactly from that question's options.

Your grading should be based on a general understanding of professional best practices.
        """.strip()
