from softgl.config import RenderConfig
from softgl.mesh import Face, Mesh
from softgl.obj import load_obj
from softgl.pipeline import (
    Frame,
    ShadowMap,
    camera_pass,
    draw_mesh,
    render,
    render_single_pass,
    render_wireframe,
    shadow_pass,
)
from softgl.raster import barycentric, line, triangle
from softgl.shaders import (
    DepthShader,
    GouraudShader,
    NormalMapShader,
    Shader,
    ShadowShader,
    SpecularShader,
    TextureShader,
    ToonShader,
)
from softgl.textures import TextureSampleError, TextureSet, load_texture_set, save_image
from softgl.transform import DEPTH, SingularMatrixError, look_at, projection, viewport

__version__ = "0.1.0"
