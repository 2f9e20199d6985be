import gradio as gr

from json_type_extractor.handlers import (
    MODES,
    NAMING_CHOICES,
    load_document_handler,
    run_extraction_handler,
)

# --- UI Definition ---
with gr.Blocks(title="JSON Type Extractor") as demo:
    gr.Markdown("# JSON Type Extractor Playground")
    gr.Markdown("Load a JSON document, pick a path and a target type, and see what extraction produces.")

    with gr.Row():
        # Left Panel: Input
        with gr.Column(scale=1):
            gr.Markdown("### 1. Import")
            file_input = gr.File(label="Upload JSON File", file_types=[".json"])
            status_msg = gr.Textbox(label="Status", interactive=False)
            json_text = gr.Code(label="JSON", language="json", lines=18, interactive=True)

        # Right Panel: Extraction
        with gr.Column(scale=1):
            gr.Markdown("### 2. Target")
            path_selector = gr.Dropdown(
                label="Path",
                choices=["(root)"],
                value="(root)",
                allow_custom_value=True,
                interactive=True,
            )
            type_input = gr.Textbox(
                label="Type",
                value="Any",
                placeholder="e.g. dict[str, list[int]] or Optional[datetime]",
            )
            mode_selector = gr.Radio(choices=MODES, value="strict", label="Mode")
            naming_selector = gr.Dropdown(
                label="Field naming",
                choices=list(NAMING_CHOICES),
                value="as declared",
                interactive=True,
            )

            gr.Markdown("### 3. Extract")
            extract_btn = gr.Button("Extract", variant="primary")
            result_output = gr.JSON(label="Result")

    file_input.upload(
        fn=load_document_handler,
        inputs=[file_input],
        outputs=[json_text, path_selector, status_msg],
    )

    extract_btn.click(
        fn=run_extraction_handler,
        inputs=[json_text, path_selector, type_input, mode_selector, naming_selector],
        outputs=[result_output, status_msg],
    )

if __name__ == "__main__":
    demo.launch()
