"""
Detectoo - Streamlit Application
Upload an image and get a simulated AI-generated vs. real verdict,
a per-region breakdown and a heatmap overlay.
"""
import logging

import streamlit as st

# Try to import OpenCV with error handling
try:
    import cv2
    OPENCV_AVAILABLE = True
except ImportError as e:
    st.error(f"OpenCV import failed: {e}")
    st.error("Please check if opencv-python-headless is installed correctly.")
    OPENCV_AVAILABLE = False

# Import our modules with error handling
try:
    from detectoo.image_handler import ImageUploadHandler
    from detectoo.pipeline import DetectionPipeline
    from detectoo.region_sampler import RegionSampler, summarize_regions, mean_confidence
    from detectoo.report import format_report, report_filename, REPORT_MIME_TYPE
    from detectoo.session import SessionStore, Phase, PAGES
    from detectoo.visualization import HeatmapRenderer, heatmap_filename
    MODULES_AVAILABLE = True
except ImportError as e:
    st.error(f"Module import failed: {e}")
    MODULES_AVAILABLE = False

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

# Configure Streamlit page
st.set_page_config(
    page_title="Detectoo - AI Image Detection",
    page_icon="🔍",
    layout="wide",
    initial_sidebar_state="expanded"
)


def get_store():
    """Return the per-session store, creating it on first use."""
    if 'store' not in st.session_state:
        st.session_state['store'] = SessionStore()
        st.session_state['uploader_key'] = 0
        st.session_state['last_upload_id'] = None
    return st.session_state['store']


def go_to(page):
    st.session_state['page'] = page


def render_home():
    st.markdown("#### ✨ 100% Free & Open Source")
    st.title("🔍 Detectoo")
    st.markdown("**Advanced AI Image Detection at Scale**")
    st.write("Detect AI-Generated Images with Precision Region Analysis")
    st.button("🚀 Start Detection", on_click=go_to, args=('detector',))

    col1, col2, col3 = st.columns(3)
    with col1:
        st.subheader("🎯 Region Detection")
        st.write(f"Every image is split into {RegionSampler.TILE_SIZE}×{RegionSampler.TILE_SIZE} "
                 "regions and each one is labelled individually.")
    with col2:
        st.subheader("🗺️ Heatmap Visualization")
        st.write("See which parts of the image look AI-generated with a colour-coded overlay.")
    with col3:
        st.subheader("📥 Export Reports")
        st.write("Download detailed analysis reports for documentation and sharing.")


def render_result(store):
    state = store.state
    result = state.result
    regions = state.regions
    counts = summarize_regions(regions)

    # Verdict
    if result.is_ai:
        st.error(f"## {result.verdict_label}\nAI Generated Content Detected")
    else:
        st.success(f"## {result.verdict_label}\nReal/Authentic Image")
    st.progress(result.confidence / 100)
    st.write(f"Confidence Level: **{result.confidence}%**")

    # Results summary
    st.subheader("📊 Analysis Summary")
    col_res1, col_res2, col_res3, col_res4 = st.columns(4)
    with col_res1:
        st.metric("File Name", result.file_name)
    with col_res2:
        st.metric("File Size", f"{result.file_size_kb} KB")
    with col_res3:
        st.metric("Processing Time", result.processing_time_label)
    with col_res4:
        st.metric("Regions Analyzed", f"{counts['total']} regions")

    with st.expander("📋 Detailed Metrics"):
        metrics = result.metrics
        st.write(f"**Methods:** {', '.join(result.methods)}")
        st.write(f"- Frequency Entropy: {metrics.frequency_entropy}%")
        st.write(f"- Color Variance: {metrics.color_variance}%")
        st.write(f"- Edge Consistency: {metrics.edge_consistency}%")
        st.write(f"- Noise Level: {metrics.noise_level}%")

    st.subheader("🎯 Region Breakdown")
    col_ai, col_real = st.columns(2)
    with col_ai:
        st.metric("🔴 AI-Generated Parts", counts['ai'],
                  help=f"Average confidence {mean_confidence(regions, is_ai=True):.0f}%")
    with col_real:
        st.metric("🟢 Real/Natural Parts", counts['real'],
                  help=f"Average confidence {mean_confidence(regions, is_ai=False):.0f}%")

    if state.phase is Phase.RESULT:
        label = "👁️ Hide Heatmap Visualization" if state.show_heatmap else "🔥 Show Heatmap Visualization"
        if st.button(label, width='stretch'):
            store.toggle_heatmap()
            st.rerun()

    if state.show_heatmap and state.heatmap is not None:
        render_heatmap(store)

    # Download options
    st.subheader("💾 Download Results")
    col_dl, col_reset = st.columns(2)
    with col_dl:
        st.download_button(
            label="📥 Download Full Report",
            data=format_report(result, list(regions)),
            file_name=report_filename(),
            mime=REPORT_MIME_TYPE,
            width='stretch'
        )
    with col_reset:
        if st.button("🔄 Analyze Another Image", width='stretch'):
            store.reset()
            st.session_state['uploader_key'] += 1
            st.session_state['last_upload_id'] = None
            st.rerun()


def render_heatmap(store):
    state = store.state
    st.subheader("🗺️ Region-by-Region Heatmap")
    heatmap = state.heatmap
    st.markdown(
        f'<img src="{heatmap.data_url}" alt="heatmap" style="width: 100%; border-radius: 12px;">',
        unsafe_allow_html=True
    )
    st.download_button(
        label="📥 Download Heatmap PNG",
        data=heatmap.to_png_bytes(),
        file_name=heatmap_filename(),
        mime="image/png"
    )

    st.markdown("#### 📖 Legend Guide")
    st.image(HeatmapRenderer().create_legend(), width=220)
    st.markdown("🔴 **RED = AI Generated**: regions likely created by AI models")
    st.markdown("🟢 **GREEN = Real Image**: natural/authentic image regions")

    with st.expander(f"📍 Detailed Region Analysis ({len(state.regions)} total regions)"):
        for region in state.regions:
            marker = "🔴 AI" if region.is_ai else "🟢 Real"
            st.write(f"{region.id + 1}. {marker} - Position: ({region.x}, {region.y}) "
                     f"- {region.confidence}%")


def render_history(store):
    history = store.state.history
    if not history:
        return
    with st.expander(f"🕘 Recent Analyses ({len(history)})"):
        for i, item in enumerate(history):
            st.write(f"{i + 1}. **{item.file_name}** - {item.verdict_label} "
                     f"({item.confidence}%, {item.file_size_kb} KB)")


def render_detector(store, pipeline):
    state = store.state
    if state.loading:
        # An earlier run was stopped by a rerun between submit and analyze
        with st.spinner("🔄 Analyzing Image... Detecting AI-generated regions using pixel analysis"):
            pipeline.resume(store)

    st.title("🔍 AI Image Detection")
    st.markdown("Upload any image to analyze for AI-generated content")

    max_mb = ImageUploadHandler.MAX_FILE_SIZE / 1024 / 1024
    uploaded_file = st.file_uploader(
        "📸 Upload Image",
        help=f"Supported: {', '.join(ImageUploadHandler.SUPPORTED_FORMATS).upper()} (Max {max_mb:.0f}MB)",
        disabled=state.loading,
        key=f"uploader_{st.session_state['uploader_key']}"
    )

    if uploaded_file is not None and uploaded_file.file_id != st.session_state['last_upload_id']:
        with st.spinner("🔄 Analyzing Image... Detecting AI-generated regions using pixel analysis"):
            # No st.* calls between submit and analyze: they can stop the script
            st.session_state['last_upload_id'] = uploaded_file.file_id
            pipeline.run(store, uploaded_file)

    if state.error:
        st.error(f"⚠️ {state.error}")

    if state.result is not None:
        col1, col2 = st.columns([1, 2])
        with col1:
            if state.image is not None:
                st.image(state.image, caption=state.file_name, width='stretch')
        with col2:
            render_result(store)
    elif state.phase is Phase.IDLE:
        st.info("👆 Upload an image to start detection")

    render_history(store)


def render_about():
    st.title("ℹ️ About Detectoo")
    st.write(
        "Detectoo splits every uploaded image into small regions and scores each "
        "region by how uniform its colour channels are. Very uniform regions are "
        "marked as AI-like, the rest as natural."
    )
    st.warning(
        "The overall verdict and its metrics are simulated and are **not** derived "
        "from the region analysis. Use the results for demonstration only."
    )
    st.markdown("- **Visual Heatmap:** colour-coded overlay directly on your image")
    st.markdown("- **Detailed Report:** comprehensive metrics and analysis data")


def render_contact():
    st.title("📧 Contact")
    st.write("Found a bug or have an idea? Open an issue on the project repository.")


def render_support():
    st.title("🛟 Support")
    with st.expander("Are my images stored anywhere?"):
        st.write("No. Images are kept in memory for your session only and are "
                 "discarded when you close the page.")
    with st.expander("Can I analyze more than one image?"):
        st.write('Yes. Click "Analyze Another Image" after each result. The last '
                 f"{SessionStore.HISTORY_LIMIT} results stay in the history.")
    with st.expander("How should I read the results?"):
        st.write("Check the heatmap visualization and the region breakdown together "
                 "with the overall verdict.")


def main():
    """Main application entry point."""
    # Detailed dependency check
    with st.sidebar.expander("🔧 System Status", expanded=not (OPENCV_AVAILABLE and MODULES_AVAILABLE)):
        if OPENCV_AVAILABLE:
            st.success(f"✅ OpenCV: {cv2.__version__}")
        else:
            st.error("❌ OpenCV: not installed")

        if MODULES_AVAILABLE:
            st.success("✅ Detection modules loaded")
        else:
            st.error("❌ Detection modules failed to load")

    if not OPENCV_AVAILABLE or not MODULES_AVAILABLE:
        st.error("❌ Dependencies are not installed correctly")
        return

    store = get_store()
    pipeline = DetectionPipeline()

    # Sidebar navigation
    with st.sidebar:
        st.header("🔍 Detectoo")
        page = st.radio(
            "Navigation",
            PAGES,
            format_func=lambda name: name.capitalize(),
            key='page'
        )
    store.navigate(page)

    if page == 'home':
        render_home()
    elif page == 'detector':
        render_detector(store, pipeline)
    elif page == 'about':
        render_about()
    elif page == 'contact':
        render_contact()
    elif page == 'support':
        render_support()

    st.markdown("---")
    st.caption("Detectoo - Open-source AI image detection tool. All analysis runs locally in this app's process.")


if __name__ == "__main__":
    main()
