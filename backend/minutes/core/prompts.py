# Transcript Review & Meeting Summary Prompts

REVIEW_SYSTEM_PROMPT = (
    "Respond concisely with only the answer to my question. "
    "Do not add any extra text, disclaimers, or commentary"
)

DEFAULT_REVIEW_PROMPT = """Please carefully review this meeting transcript and perform light editing to improve readability while maintaining the original speaker's voice and meaning. Focus on:
- Contextual Correction - Fix obvious transcription errors (e.g., '听音乐' artifacts, repeated phrases) while keeping industry terms and natural speech patterns
- Grammar Flow - Make minimal grammatical adjustments only when necessary for comprehension
- Duplicate Handling - Remove duplicate lines that appear to be transcription errors (keep intentional repetitions like emphasis)
- Format Retention - Maintain the original timestamp format: [HH:MM:SS] [Speaker] Text

Example conversion:
Original: [00:01:07] [speaker] I think this will be our next big hit. 听音乐
Edited: [00:01:07] [speaker] I think this will be our next big hit. [removed audio artifact]

Now process this full transcript with light-touch edits:
"""

DEFAULT_SUMMARY_PROMPT = """Generate a formal business meeting minutes document in both Traditional Chinese and English. Follow this structure:
- Header: Include meeting title, date, time, location (physical/virtual).
- Attendees: List names and titles/departments (mark absentees if any).
- Meeting Summary:
  - Organize by agenda items, with key discussion points and decisions.
  - Use bullet points for clarity.
- Action Items: Present in a table with columns: Task, Owner, Deadline, Notes.
- Other Notes: Any additional items or follow-ups.
- Footer: Recorder's name and next meeting date (if confirmed).

Requirements:
- Maintain a professional tone.
- Output both languages side-by-side or sequentially (clearly labeled).
- Highlight decisions and deadlines in bold.

Transcription format:
[time1] [speaker1] content1
[time2] [] content2
sample:
[00:00:00] [Amy] Hello everyone! Thank you guys for coming to our weekly Student Success Meeting. Let's just get started.
[00:00:00] [] I think that's a great idea. Let's try that next week.

Please create a meeting summary from the following transcription:
"""

DEFAULT_INITIAL_PROMPT = (
    "This is a professional meeting recording with multiple speakers. "
    "The discussion may include project updates, action items, deadlines, and strategic planning. "
    "Speakers use common business terms like 'KPIs,' 'ROI,' 'milestones,' and 'stakeholders.' "
    "Transcribe with proper punctuation, capitalization, and paragraph breaks for clarity. "
    "Ignore filler words like 'um,' 'uh,' or 'you know' unless critical to context."
)

REVIEW_TEMPERATURE = 0.1
SUMMARY_TEMPERATURE = 0.5


def build_review_prompt(transcript_text: str, prompt: str = None) -> str:
    return f"{(prompt or DEFAULT_REVIEW_PROMPT).rstrip()}\n\n{transcript_text}"


def build_summary_prompt(transcript_text: str, prompt: str = None) -> str:
    return f"{(prompt or DEFAULT_SUMMARY_PROMPT).rstrip()}\n\n{transcript_text}"
