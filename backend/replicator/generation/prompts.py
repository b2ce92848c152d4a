"""Prompt text for generation, video analysis and refinement."""

IMAGE_PROMPT = """I have an image of a UI design. Please analyze this image and generate responsive HTML and CSS that replicates this UI as accurately as possible. Focus on:
1. The visual layout and components
2. Spacing and alignment
3. Typography and text styling
4. Colors and visual styling
5. Responsive design considerations

Please provide a complete implementation with HTML structure and CSS styling. The code should be well-structured, accessible, and follow best practices."""


def video_overview_prompt(frame_count: int, duration: float) -> str:
    return f"""I have a video of a UI with interactions. I've extracted {frame_count} key frames from this {duration:.1f}-second video to help you understand the UI flow and interactions.

I'm showing you the first frame now, which represents the initial UI state. Please analyze this frame to understand the basic UI layout and components. In my next messages, I'll show you the subsequent frames to help you understand the interactions and state changes.

Please generate responsive HTML, CSS, and JavaScript that EXACTLY replicates this UI and its interactions. The generated code must look and behave like the UI shown in the video frames.

Focus on:
1. The precise visual layout and components shown in the first frame
2. Interactive elements and their exact behavior across frames
3. Animations and transitions between UI states with accurate timing
4. User flows and navigation patterns exactly as demonstrated
5. Responsive design considerations

Please provide a complete implementation with HTML structure, CSS styling, and JavaScript for the interactions."""


def frame_analysis_prompt(frame_index: int, frame_count: int, timestamp: float, duration: float) -> str:
    prompt = (
        f"This is frame {frame_index + 1} of {frame_count}, captured at {timestamp:.1f} seconds "
        f"into the {duration:.1f}-second video."
    )
    if frame_index == 0:
        return prompt + (
            "\n\nThis is the initial state of the UI. Please analyze the layout, components, and overall "
            "structure in extreme detail. Identify ALL interactive elements that might change in later frames."
        )
    return prompt + f"""

Please analyze EXACTLY how the UI has changed from frame {frame_index}.

Focus on:
1. EXACTLY which UI elements have changed (position, size, color, visibility, etc.)
2. What specific user interaction most likely caused these changes (click, hover, drag, scroll, etc.)
3. Any animations or transitions that are occurring, including their timing and easing
4. The exact sequence and flow of the interaction
5. Any state changes in the UI (e.g., form validation, toggling, selection states)"""


def interaction_summary_prompt(frame_count: int, duration: float) -> str:
    return f"""Now that you've analyzed all {frame_count} frames from this {duration:.1f}-second video, please provide an EXTREMELY DETAILED summary of the UI interactions you've observed.

1. List ALL interactive elements identified with their exact appearance and behavior
2. Describe the complete interaction flow from beginning to end with precise timing
3. Detail ALL animations, transitions, or state changes with their exact properties
4. Explain the exact cause-and-effect relationships between user actions and UI responses
5. Describe any conditional logic or complex interaction patterns in detail
6. Note any micro-interactions or subtle effects that might be easy to miss

This summary will be used to generate JavaScript that replicates these interactions, so be as comprehensive and precise as possible."""


def implementation_prompt(frame_count: int, duration: float, interaction_summary: str) -> str:
    return f"""Based on your analysis of all {frame_count} frames from the {duration:.1f}-second video and the interaction summary:

{interaction_summary}

Please generate the complete HTML, CSS, and JavaScript implementation that EXACTLY replicates this UI and all its interactions.

Your implementation MUST:
1. Match the visual appearance of the UI with pixel-perfect accuracy
2. Implement all interactive elements with the same behavior as shown in the video
3. Include all animations and transitions with the same timing and easing
4. Handle all state changes and conditional logic precisely as demonstrated
5. Be responsive and work across different screen sizes

Provide the complete code with separate HTML, CSS, and JavaScript sections. The JavaScript must include ALL event handlers and interaction logic needed to make the UI fully functional."""


def critique_prompt(iteration: int, max_iterations: int, is_video: bool) -> str:
    source = "video frames" if is_video else "design image"
    return f"""I have an original UI {source} and HTML code that was generated to replicate it. Please analyze how well the HTML matches the original design and suggest specific improvements to make the HTML more accurately match it.

Focus on these aspects:
1. LAYOUT - How well does the spatial arrangement and proportions match?
2. COLORS - Are the colors in the HTML exactly matching the original?
3. TYPOGRAPHY - Do the fonts, sizes, and text styling match?
4. COMPONENTS - Are all UI elements (buttons, inputs, etc.) properly represented?
5. SPACING - Is the padding, margin, and overall spacing accurate?

If the match is already very good (95%+ accurate), please state that no further improvements are needed.
Otherwise, provide specific code changes to improve the match. Be precise with your suggestions.

Current iteration: {iteration} of {max_iterations}"""


def current_html_prompt(html: str) -> str:
    return f"Here is the current HTML code:\n\n```html\n{html}\n```"


def improvement_prompt(critique: str, html: str) -> str:
    return f"""Based on this analysis of the HTML compared to the original design:

{critique}

Here is the HTML being improved:

```html
{html}
```

Please generate an improved version of the HTML that better matches the original design. Return ONLY the complete HTML code with no explanations or markdown formatting."""
