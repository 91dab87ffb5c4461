"""
AI Interviewer Prompt Templates

Contains structured prompts for:
- Generating the next primary question
- Generating a follow-up to the latest answer

Every prompt asks for a single JSON object so replies can be parsed
without free-text heuristics.
"""

from interview_engine.models.interview import FollowUpContext, InterviewType, QuestionContext
from interview_engine.models.roles import get_complexity, get_topics_for_role


RESUME_CHAR_LIMIT = 3000
JOB_DESCRIPTION_CHAR_LIMIT = 2000
MIXED_RESUME_CHAR_LIMIT = 1500
MIXED_JOB_DESCRIPTION_CHAR_LIMIT = 1000
RECENT_ANSWER_CHAR_LIMIT = 300


class InterviewerPrompts:
    """
    Prompt templates for the AI interviewer.

    Key principles:
    - One question at a time
    - Practical, scenario-based over textbook
    - Never repeat a question already asked
    - Depth matched to the candidate's experience level
    """

    QUESTION_FORMAT = """RESPONSE FORMAT:
Always respond with valid JSON in this exact format:
{
  "question": "Your interview question here",
  "questionType": "technical|behavioral|situational|resume-based",
  "category": "The skill/topic being tested",
  "difficulty": "easy|medium|hard",
  "expectedKeywords": ["keyword1", "keyword2"],
  "idealAnswerPoints": ["point1", "point2", "point3"]
}"""

    def system_context(
        self,
        interview_type: str,
        role: str,
        experience_level: str,
        target_skills: list[str] | None = None,
    ) -> str:
        """Interviewer persona and guidelines for one interview."""
        complexity = get_complexity(experience_level)
        skills_line = f"- Focus Skills: {', '.join(target_skills)}\n" if target_skills else ""

        return f"""You are an experienced technical interviewer conducting a {interview_type} interview for a {role} position.

INTERVIEWER PERSONA:
- You are professional, friendly, and encouraging
- You ask clear, specific questions that test real-world skills
- You never reveal that you are an AI or discuss your internal workings
- You avoid generic textbook questions - focus on practical scenarios

INTERVIEW CONTEXT:
- Role: {role}
- Experience Level: {experience_level} ({complexity.depth})
- Question Complexity: {complexity.complexity}
- Expected Answer Depth: {complexity.expectation}
{skills_line}
QUESTION GUIDELINES:
1. Ask ONE question at a time
2. Questions should test {complexity.depth}
3. For technical roles, include scenario-based questions
4. For behavioral questions, use STAR format expectations
5. Never provide hints or answers within the question

{self.QUESTION_FORMAT}
"""

    def generate_question_prompt(self, context: QuestionContext) -> str:
        """Generate prompt for creating the next primary question."""
        system = self.system_context(
            context.interview_type.value,
            context.role,
            context.experience_level.value,
            context.target_skills,
        )

        return f"""{system}
{self._type_context(context)}

CURRENT STATUS:
- Question Number: {context.question_number}
- Current Difficulty: {context.target_difficulty.value}
{self._history_context(context)}
Generate the next interview question. Make it specific and practical.
The question MUST be at "{context.target_difficulty.value}" difficulty."""

    def _type_context(self, context: QuestionContext) -> str:
        """Context block specific to the interview type."""
        if context.interview_type == InterviewType.RESUME_BASED:
            resume = (context.resume_text or "")[:RESUME_CHAR_LIMIT] or "No resume provided"
            return f"""
RESUME CONTENT:
{resume}

Ask a question that explores the candidate's experience mentioned in their resume.
Focus on specific projects, skills, or achievements they've listed."""

        if context.interview_type == InterviewType.JOB_DESCRIPTION:
            jd = (context.job_description or "")[:JOB_DESCRIPTION_CHAR_LIMIT] or "No job description provided"
            return f"""
JOB DESCRIPTION:
{jd}

Ask a question that tests skills and requirements mentioned in this job description.
Focus on practical scenarios the candidate might face in this role."""

        if context.interview_type == InterviewType.TECHNICAL:
            topics = get_topics_for_role(context.role)
            priority = (
                f"PRIORITY SKILLS: {', '.join(context.target_skills)}\n"
                if context.target_skills else ""
            )
            return f"""
TECHNICAL TOPICS TO COVER: {', '.join(topics)}
{priority}
Ask a practical technical question that tests real-world problem-solving.
Avoid purely theoretical questions - prefer scenario-based ones."""

        if context.interview_type == InterviewType.BEHAVIORAL:
            return """
BEHAVIORAL COMPETENCIES TO ASSESS:
- Leadership and initiative
- Teamwork and collaboration
- Problem-solving under pressure
- Communication and conflict resolution
- Adaptability and learning

Ask a behavioral question using the STAR format expectation.
Start with phrases like "Tell me about a time when..." or "Describe a situation where..." """

        parts = ["\nThis is a mixed interview covering both technical and behavioral aspects."]
        if context.resume_text:
            parts.append(f"Consider the candidate's resume: {context.resume_text[:MIXED_RESUME_CHAR_LIMIT]}")
        if context.job_description:
            parts.append(
                f"And the job requirements: {context.job_description[:MIXED_JOB_DESCRIPTION_CHAR_LIMIT]}"
            )
        parts.append("\nAlternate between technical and behavioral questions for a balanced assessment.")
        return "\n".join(parts)

    def _history_context(self, context: QuestionContext) -> str:
        """All previous questions, plus the last two Q&A pairs in full."""
        if not context.prior_questions:
            return ""

        all_previous = "\n".join(
            f"{i}. {q}" for i, q in enumerate(context.prior_questions, 1)
        )

        recent = []
        offset = len(context.prior_questions) - 2
        for i, question in enumerate(context.prior_questions[-2:]):
            index = max(offset, 0) + i
            answer = context.prior_answers[index] if index < len(context.prior_answers) else ""
            recent.append(f"Q: {question}\nA: {(answer or 'No answer')[:RECENT_ANSWER_CHAR_LIMIT]}")

        return f"""
IMPORTANT - DO NOT REPEAT THESE QUESTIONS (already asked):
{all_previous}

RECENT Q&A (for context to build upon):
{chr(10).join(recent)}

Generate a COMPLETELY DIFFERENT question that has not been asked yet.
"""

    def generate_followup_prompt(self, context: FollowUpContext) -> str:
        """Generate prompt for a follow-up question probing the last answer."""
        system = self.system_context(
            "follow-up",
            context.role,
            context.experience_level.value,
        )
        reason = context.reason or "The answer needs more depth or clarification."

        return f"""{system}
PREVIOUS QUESTION:
{context.previous_question}

CANDIDATE'S ANSWER:
{context.previous_answer}

REASON FOR FOLLOW-UP:
{reason}

Generate a natural follow-up question that digs deeper into what the candidate mentioned.
Make it conversational, like a real interviewer probing for more details."""
