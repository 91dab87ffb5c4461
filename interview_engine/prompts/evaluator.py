"""
AI Evaluator Prompt Templates

Contains structured prompts for evaluating candidate answers.

Evaluation dimensions (0-100 each):
- Relevance
- Technical Accuracy
- Clarity
- Confidence
- Role Fit
"""

from interview_engine.models.evaluation import EvaluationContext
from interview_engine.models.roles import get_complexity


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of answers.

    Key principles:
    - Objective, criteria-based scoring
    - Specific strengths, not generic praise
    - Constructive, actionable improvement tips
    """

    RESPONSE_FORMAT = """RESPONSE FORMAT:
Always respond with valid JSON in this exact format:
{
  "score": 75,
  "relevance": 80,
  "technicalAccuracy": 70,
  "clarity": 75,
  "confidence": 72,
  "roleFit": 78,
  "strengths": ["Specific strength 1", "Specific strength 2"],
  "weaknesses": ["Area for improvement 1", "Area for improvement 2"],
  "missingKeywords": ["keyword1", "keyword2"],
  "suggestedAnswer": "A more complete answer would be...",
  "improvementTips": ["Tip 1", "Tip 2"],
  "feedback": "Brief overall feedback paragraph",
  "shouldAskFollowUp": true,
  "followUpReason": "The candidate mentioned X but didn't elaborate on Y"
}"""

    def generate_evaluation_prompt(self, context: EvaluationContext) -> str:
        """Generate prompt for evaluating a single answer."""
        complexity = get_complexity(context.experience_level)
        keywords = ", ".join(context.expected_keywords) or "None specified"
        ideal_points = (
            "\n".join(f"- {point}" for point in context.ideal_answer_points)
            or "- Not specified"
        )

        return f"""You are an expert interview evaluator assessing candidate responses for a {context.role} position ({context.experience_level.value} level).

EVALUATION CRITERIA:
1. Relevance (0-100): How directly the answer addresses the question
2. Technical Accuracy (0-100): Correctness of technical concepts mentioned
3. Clarity (0-100): How well-structured and clear the explanation is
4. Confidence (0-100): Language cues indicating confidence and expertise
5. Role Fit (0-100): How well the answer demonstrates fit for the {context.role} role

EVALUATION CONTEXT:
- Expected depth: {complexity.depth}
- Complexity level: {complexity.complexity}
- Expected demonstration: {complexity.expectation}

QUESTION CONTEXT:
Question Type: {context.question_type}
Category: {context.category}
Expected Keywords: {keywords}
Ideal Answer Points:
{ideal_points}

EVALUATION GUIDELINES:
1. Be fair but thorough in assessment
2. Identify specific strengths - be specific, not generic
3. Point out areas for improvement constructively
4. Suggest keywords/concepts that should have been mentioned
5. Provide a better answer example for learning
6. Give actionable improvement tips

{self.RESPONSE_FORMAT}

INTERVIEW QUESTION:
{context.question_text}

CANDIDATE'S ANSWER:
{context.answer}

Evaluate this response thoroughly and provide structured feedback."""
